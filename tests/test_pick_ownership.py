from commish.models.sleeper import TradedPick, Transaction
from commish.services.pick_ownership import PickOwnershipLedger, chronological, resolve_ownership


def trade(transaction_id, when, *moves, status="complete"):
    """A trade moving picks given as (season, round, original, new_owner, previous_owner)."""
    return Transaction(
        transaction_id=transaction_id,
        type="trade",
        status=status,
        created=when,
        status_updated=when,
        draft_picks=[
            {"season": season, "round": rd, "roster_id": original, "owner_id": owner, "previous_owner_id": previous}
            for season, rd, original, owner, previous in moves
        ],
    )


T1 = trade("1", 1000, ("2026", 1, 1, 2, 1))
T2 = trade("2", 2000, ("2026", 1, 1, 3, 2))


def test_latest_trade_wins_and_history_is_kept():
    ownership = resolve_ownership([1, 2, 3], [T1, T2], "2026", 2)
    claim = ownership.ownership["1-1"]
    assert claim.owner_roster_id == 3
    assert [(s.from_roster_id, s.to_roster_id) for s in claim.history] == [(1, 2), (2, 3)]
    assert [s.trade_id for s in claim.history] == ["1", "2"]


def test_untraded_picks_stay_with_original_roster():
    ownership = resolve_ownership([1, 2, 3], [T1, T2], "2026", 2)
    assert len(ownership.ownership) == 6
    for key in ("1-2", "2-1", "2-2", "3-1", "3-2"):
        claim = ownership.ownership[key]
        assert claim.owner_roster_id == claim.original_roster_id
        assert claim.history == []


def test_input_order_does_not_matter():
    forward = resolve_ownership([1, 2, 3], [T1, T2], "2026", 2)
    backward = resolve_ownership([1, 2, 3], [T2, T1], "2026", 2)
    assert forward == backward


def test_applying_in_batches_matches_one_pass():
    ledger = PickOwnershipLedger([1, 2, 3], "2026", 2)
    ledger.apply([T1])
    ledger.apply([T2])
    assert ledger.to_ownership() == resolve_ownership([1, 2, 3], [T1, T2], "2026", 2)


def test_equal_timestamps_break_ties_on_numeric_id():
    first = trade("9", 5000, ("2026", 1, 1, 2, 1))
    second = trade("10", 5000, ("2026", 1, 1, 3, 2))
    assert [t.transaction_id for t in chronological([second, first])] == ["9", "10"]
    ownership = resolve_ownership([1, 2, 3], [second, first], "2026", 1)
    assert ownership.ownership["1-1"].owner_roster_id == 3


def test_other_seasons_and_incomplete_trades_are_ignored():
    future = trade("3", 3000, ("2027", 1, 1, 2, 1))
    failed = trade("4", 4000, ("2026", 2, 1, 2, 1), status="failed")
    ownership = resolve_ownership([1, 2], [future, failed], "2026", 2)
    assert ownership.ownership["1-1"].owner_roster_id == 1
    assert ownership.ownership["1-2"].owner_roster_id == 1


def test_unknown_rosters_and_no_op_moves_are_skipped():
    unknown_original = trade("5", 1000, ("2026", 1, 99, 2, 99))
    unknown_owner = trade("6", 2000, ("2026", 1, 1, 99, 1))
    no_op = trade("7", 3000, ("2026", 2, 1, 1, 1))
    no_previous = trade("8", 4000, ("2026", 2, 2, 1, None))
    ownership = resolve_ownership([1, 2], [unknown_original, unknown_owner, no_op, no_previous], "2026", 2)
    assert "99-1" not in ownership.ownership
    assert all(not claim.history for claim in ownership.ownership.values())
    assert ownership.ownership["1-1"].owner_roster_id == 1
    assert ownership.ownership["2-2"].owner_roster_id == 2


def test_seeding_from_traded_picks():
    seeded = [
        TradedPick(season="2026", round=2, roster_id=1, owner_id=3, previous_owner_id=1),
        TradedPick(season="2025", round=1, roster_id=2, owner_id=3, previous_owner_id=2),
    ]
    ledger = PickOwnershipLedger([1, 2, 3], "2026", 2)
    ledger.seed(seeded)
    assert ledger.owner_of(1, 2) == 3
    assert ledger.owner_of(2, 1) == 2


def test_team_names_fill_history_and_fall_back_to_roster_label():
    ownership = resolve_ownership([1, 2, 3], [T1], "2026", 1, team_names={1: "Red Pandas", 2: "bop pop"})
    step = ownership.ownership["1-1"].history[0]
    assert (step.from_team, step.to_team) == ("Red Pandas", "bop pop")
    assert ownership.roster_id_to_team == {"1": "Red Pandas", "2": "bop pop", "3": "Roster 3"}
    assert ownership.roster_count == 3
