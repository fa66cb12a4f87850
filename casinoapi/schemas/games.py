from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field


class BetRequest(BaseModel):
    amount: int = Field(..., description="Stake in whole tokens")


class HighLowChoiceRequest(BaseModel):
    direction: Literal["higher", "lower"]


class RouletteSelectRequest(BaseModel):
    color: Literal["red", "black"]


class RouletteSpinRequest(BaseModel):
    amount: int = Field(..., description="Stake in whole tokens")
    color: Optional[Literal["red", "black"]] = Field(
        None, description="Overrides the previously selected colour"
    )


class CardView(BaseModel):
    rank: str
    value: int
    suit: str
    suit_color: str
    code: str


class BlackjackTable(BaseModel):
    player_hand: List[CardView] = []
    dealer_hand: List[CardView] = []
    player_total: int = 0
    dealer_total: Optional[int] = None
    hide_dealer_hole: bool = True


class HighLowTable(BaseModel):
    first_card: Optional[CardView] = None
    second_card: Optional[CardView] = None
    direction: Optional[str] = None


class LineWinView(BaseModel):
    line_id: str
    label: str
    symbol: str
    payout: int


class SlotsTable(BaseModel):
    reels: List[List[str]] = []
    line_wins: List[LineWinView] = []
    winning_positions: List[List[int]] = []
    is_jackpot: bool = False


class RouletteTable(BaseModel):
    selected_color: Optional[str] = None
    result_color: Optional[str] = None
    result_section: Optional[int] = None
    wheel_rotation: Optional[float] = None


class RoundView(BaseModel):
    """Client view of the current round. Hidden cards and unplayed decks are never included."""

    id: Optional[str] = None
    game_type: str
    stage: str
    stake: int = 0
    outcome: Optional[str] = None
    payout: int = 0
    note: Optional[str] = None
    error: Optional[str] = None
    rng_seed: Optional[int] = Field(None, description="Revealed once the round is settled")
    started_at: Optional[datetime] = None
    settled_at: Optional[datetime] = None
    table: Dict[str, Any] = {}


class HistoryEntry(BaseModel):
    id: str
    outcome: Optional[str]
    stake: int
    payout: int
    note: Optional[str]
    timestamp: Optional[datetime]


class RoundVerification(BaseModel):
    round_id: str
    game_type: str
    rng_seed: int
    recorded: Dict[str, Any]
    replayed: Dict[str, Any]
    matches: bool
