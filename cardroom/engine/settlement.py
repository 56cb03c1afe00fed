"""
Settlement of a finished match.

Pure functions turning final hands and bets into per-player results and
balance changes. Nothing here touches a Match; the Match applies the
returned outcomes itself.
"""

from dataclasses import dataclass
from typing import Iterable, List, Sequence

from cardroom.engine.rules import TableRules
from cardroom.state.models import HandResult, PlayerState


@dataclass(frozen=True)
class Outcome:
    """
    Settlement of one player's hand.

    Attributes:
        player_id: Player the outcome belongs to
        result: WIN, LOSE or PUSH
        player_total: Final total of the player's hand
        dealer_total: Final total of the dealer's hand
        bet: Stake the player had placed
        balance_delta: Amount added to the balance at settlement
    """

    player_id: str
    result: HandResult
    player_total: int
    dealer_total: int
    bet: int
    balance_delta: int


def hand_total(cards: Iterable[int]) -> int:
    """
    Calculate the value of a hand.

    Cards are stored as point values already, so the total is a flat sum with
    no soft or hard distinction.
    """
    return sum(cards)


def determine_result(
    player_total: int, dealer_total: int, bust_limit: int = 21
) -> HandResult:
    """
    Decide a hand against the dealer.

    A busted player loses even when the dealer also busts.

    Args:
        player_total: Final player total
        dealer_total: Final dealer total
        bust_limit: Highest total that does not bust

    Returns:
        The hand result
    """
    if player_total > bust_limit:
        return HandResult.LOSE
    if dealer_total <= bust_limit and dealer_total > player_total:
        return HandResult.LOSE
    if player_total == dealer_total:
        return HandResult.PUSH
    return HandResult.WIN


def balance_delta(result: HandResult, bet: int, rules: TableRules) -> int:
    """
    Amount to add to a player's balance for a settled hand.

    The stake left the balance when the bet was placed. A win returns it plus
    an equal amount, a push returns it, and a loss keeps it. With
    ``debit_lost_bets_twice`` a loss is charged the stake a second time.
    """
    if result == HandResult.WIN:
        return 2 * bet
    if result == HandResult.PUSH:
        return bet
    if rules.debit_lost_bets_twice:
        return -bet
    return 0


def settle(
    dealer_hand: Sequence[int],
    players: Iterable[PlayerState],
    rules: TableRules = TableRules(),
) -> List[Outcome]:
    """
    Settle every player against the dealer.

    Args:
        dealer_hand: The dealer's final cards
        players: Players to settle, in seating order
        rules: Table rules in force

    Returns:
        One Outcome per player, in the same order
    """
    dealer_total = hand_total(dealer_hand)
    outcomes = []

    for player in players:
        player_total = hand_total(player.hand)
        result = determine_result(player_total, dealer_total, rules.bust_limit)
        outcomes.append(
            Outcome(
                player_id=player.id,
                result=result,
                player_total=player_total,
                dealer_total=dealer_total,
                bet=player.current_bet,
                balance_delta=balance_delta(result, player.current_bet, rules),
            )
        )

    return outcomes
