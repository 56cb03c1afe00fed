"""
Table rules for Cardroom matches.

Rules are built from a plain configuration dict merged over the defaults, the
same way the server builds them from its command line options.
"""

from dataclasses import asdict, dataclass, fields
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class TableRules:
    """
    Rules shared by every match created by a registry.

    Attributes:
        starting_balance: Chips given to each player on joining a match
        dealer_stands_on: Dealer draws while its total is below this value
        bust_limit: Highest total that does not bust
        min_card: Lowest card value the table deals
        max_card: Highest card value the table deals
        debit_lost_bets_twice: Charge a lost stake again at settlement, on top
            of the debit taken when the bet was placed. Off by default.
    """

    starting_balance: int = 100
    dealer_stands_on: int = 17
    bust_limit: int = 21
    min_card: int = 1
    max_card: int = 10
    debit_lost_bets_twice: bool = False

    def __post_init__(self):
        if self.starting_balance < 0:
            raise ValueError("starting_balance must be non-negative")
        if self.min_card < 1 or self.max_card < self.min_card:
            raise ValueError("Card range must satisfy 1 <= min_card <= max_card")
        if not 0 < self.dealer_stands_on <= self.bust_limit:
            raise ValueError("dealer_stands_on must be between 1 and bust_limit")

    @classmethod
    def from_dict(cls, config: Optional[Dict[str, Any]] = None) -> "TableRules":
        """
        Build rules from a configuration dict.

        Args:
            config: Overrides for any of the default rule values

        Returns:
            A TableRules instance

        Raises:
            ValueError: If the config names an unknown rule or an invalid value
        """
        config = config or {}
        known = {f.name for f in fields(cls)}
        unknown = set(config) - known
        if unknown:
            raise ValueError(f"Unknown table rules: {', '.join(sorted(unknown))}")

        merged = asdict(cls())
        merged.update(config)
        return cls(**merged)

    def to_dict(self) -> Dict[str, Any]:
        """Convert rules to a dictionary for serialization."""
        return asdict(self)

    def is_bust(self, total: int) -> bool:
        return total > self.bust_limit

    def should_dealer_draw(self, dealer_total: int) -> bool:
        """Determine if the dealer should draw another card."""
        return dealer_total < self.dealer_stands_on
