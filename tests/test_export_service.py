import csv
import io
from datetime import datetime, timezone

import pytest

from casinoapi.services.export_service import HEADERS, ExportService, export_filename

USER = "user-1"


@pytest.fixture
def exporter(db, test_settings):
    return ExportService(db, test_settings)


class TestExportService:
    def test_columns_and_rows(self, exporter):
        exporter.ledger.debit(USER, 100, "Blackjack bet", game_id="round-9")
        exporter.ledger.credit(USER, 200, "Blackjack win")

        export = exporter.export_transactions(USER, "player")
        rows = list(csv.reader(io.StringIO(export.content)))

        assert rows[0] == HEADERS
        assert export.row_count == 3
        newest, middle, oldest = rows[1:]
        assert newest[2:] == ["credit", "200", "401100", "Blackjack win", ""]
        assert middle[2:] == ["debit", "100", "400900", "Blackjack bet", "round-9"]
        assert oldest[5] == "Initial satirical 401k deposit"
        assert newest[0].endswith("Z")
        datetime.fromisoformat(newest[0].replace("Z", "+00:00"))

    def test_every_field_is_quoted(self, exporter):
        exporter.ledger.debit(USER, 100, 'Bet, "quoted"')

        export = exporter.export_transactions(USER)

        header_line = export.content.splitlines()[0]
        assert header_line == ",".join(f'"{h}"' for h in HEADERS)
        assert '"Bet, ""quoted"""' in export.content

    def test_caps_at_export_limit(self, exporter):
        for i in range(210):
            exporter.ledger.credit(USER, 1, f"credit {i}")

        export = exporter.export_transactions(USER)

        assert export.row_count == 200
        assert len(export.content.strip().split("\n")) == 201

    def test_filename_pattern(self):
        when = datetime(2024, 3, 9, 23, 0, tzinfo=timezone.utc)

        assert export_filename("alice", when) == "transactions-alice-20240309.csv"

    @pytest.mark.parametrize(
        "identifier, expected",
        [
            ("李雷", "user"),
            ("li.lei+casino", "li.leicasino"),
            ('a"b;c', "abc"),
            ("..", "user"),
            ("", "user"),
        ],
    )
    def test_filename_is_header_safe(self, identifier, expected):
        when = datetime(2024, 3, 9, tzinfo=timezone.utc)

        assert export_filename(identifier, when) == f"transactions-{expected}-20240309.csv"

    def test_filename_uses_user_identifier(self, exporter):
        export = exporter.export_transactions(USER, "alice")

        assert export.filename.startswith("transactions-alice-")
        assert export.filename.endswith(".csv")
