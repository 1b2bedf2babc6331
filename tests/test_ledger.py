# tests/test_ledger.py

from vlogwheel.core.clock import DayClock
from vlogwheel.core.ledger import SubmissionLedger
from vlogwheel.schemas.state import MediaKind, Outcome, Pick, WheelState

from tests.helpers import A, B, at


def _ledger_with_pick(day_key: str = "2024-03-10", member_id: str = B):
    state = WheelState()
    state.set_pick(day_key, Pick(member_id=member_id))
    return state, SubmissionLedger(state, DayClock(day_start_hour=5))


def test_submission_from_todays_pick_is_bound():
    state, ledger = _ledger_with_pick()

    sub = ledger.record_submission(B, MediaKind.VIDEO, at(10, 9))

    assert sub.note is None
    assert sub.outcome == Outcome.OPEN
    assert sub.finalized is False
    assert state.picks["2024-03-10"].submission_ids == [sub.id]
    assert ledger.latest_for_pick("2024-03-10").id == sub.id


def test_submission_from_other_member_is_off_cycle():
    """
    今日の担当者以外の投稿は off-cycle として保存され、どの Pick にも入らない。
    """
    state, ledger = _ledger_with_pick()

    sub = ledger.record_submission(A, MediaKind.VOICE, at(10, 9))

    assert sub.off_cycle
    assert sub.id in state.submissions
    assert all(sub.id not in p.submission_ids for p in state.picks.values())


def test_submission_before_day_start_binds_to_previous_day():
    """
    04:00 の投稿は前日の日付キーの Pick に紐づく。
    """
    state, ledger = _ledger_with_pick(day_key="2024-03-09")

    sub = ledger.record_submission(B, MediaKind.VIDEO, at(10, 4))

    assert state.picks["2024-03-09"].submission_ids == [sub.id]


def test_submission_without_any_pick_is_off_cycle():
    state = WheelState()
    ledger = SubmissionLedger(state, DayClock(day_start_hour=5))

    sub = ledger.record_submission(B, MediaKind.VIDEO, at(10, 9))

    assert sub.off_cycle


def test_ids_are_unique_and_ordered_even_within_the_same_millisecond():
    state, ledger = _ledger_with_pick()

    first = ledger.record_submission(B, MediaKind.VIDEO, at(10, 9))
    second = ledger.record_submission(B, MediaKind.VIDEO, at(10, 9))
    # 時計が戻っても作成順は保たれる
    third = ledger.record_submission(B, MediaKind.VOICE, at(10, 8))

    assert len({first.id, second.id, third.id}) == 3
    assert sorted([third.id, first.id, second.id]) == [first.id, second.id, third.id]
    assert state.picks["2024-03-10"].submission_ids == [first.id, second.id, third.id]


def test_bind_announcement_maps_reply_to_submission():
    state, ledger = _ledger_with_pick()
    sub = ledger.record_submission(B, MediaKind.VIDEO, at(10, 9))

    ledger.bind_announcement(sub.id, "ann-1")

    assert sub.bound_announcement_id == "ann-1"
    assert ledger.find_by_announcement("ann-1") is sub
    assert ledger.find_by_announcement("unknown") is None
