# tests/test_voting.py

import pytest

from vlogwheel.core.clock import DayClock
from vlogwheel.core.ledger import SubmissionLedger
from vlogwheel.core.streaks import StreakTracker
from vlogwheel.core.voting import VotingEngine, decide, decide_forced
from vlogwheel.errors import AlreadyFinalizedError, UnresolvedVoteTargetError
from vlogwheel.schemas.state import MediaKind, Member, Outcome, Pick, WheelState

from tests.helpers import A, B, C, at


def _engine(member_count: int = 3, pick_member: str = B):
    """
    member_count 人のロスターと、2024-03-10 の Pick を持つ VotingEngine を作る。
    """
    state = WheelState()
    ids = [A, B, C] + [f"{i}@s.whatsapp.net" for i in range(900, 900 + max(0, member_count - 3))]
    for member_id in ids[:member_count]:
        state.upsert_member(Member(id=member_id, display_name=member_id.split("@")[0]))
    state.set_pick("2024-03-10", Pick(member_id=pick_member))

    clock = DayClock(day_start_hour=5)
    ledger = SubmissionLedger(state, clock)
    streaks = StreakTracker(state, clock)
    return state, ledger, VotingEngine(state, clock, ledger, streaks)


@pytest.mark.parametrize(
    "approvals, rejections, roster_size, expected",
    [
        (1, 0, 5, Outcome.APPROVED),
        (2, 1, 5, Outcome.APPROVED),
        (1, 1, 3, Outcome.OPEN),
        (0, 3, 5, Outcome.OPEN),
        (0, 4, 5, Outcome.REJECTED),
        (1, 3, 5, Outcome.REJECTED),
        (0, 1, 1, Outcome.REJECTED),
        (0, 1, 2, Outcome.REJECTED),
        (0, 0, 5, Outcome.OPEN),
    ],
)
def test_decision_rule(approvals, rejections, roster_size, expected):
    assert decide(approvals, rejections, roster_size) == expected


def test_forced_decision_rejects_when_nothing_is_decided():
    # 票なし
    assert decide_forced(0, 0, 5) == Outcome.REJECTED
    # 同票
    assert decide_forced(1, 1, 3) == Outcome.REJECTED
    # 却下が多いが定足数に届かない
    assert decide_forced(0, 2, 5) == Outcome.REJECTED
    # 承認は通常どおり
    assert decide_forced(2, 1, 5) == Outcome.APPROVED


def test_first_approval_decides_with_five_members():
    """
    M=5, [True, True] → 1票目の時点で A>R かつ A>=1 なので承認。
    2票目が届く頃には確定済みで、結果は承認のまま。
    """
    state, ledger, voting = _engine(member_count=5)
    sub = ledger.record_submission(B, MediaKind.VIDEO, at(10, 9))

    first = voting.cast_vote(A, True, at(10, 10))
    assert first.outcome == Outcome.APPROVED
    assert sub.outcome == Outcome.APPROVED

    with pytest.raises(AlreadyFinalizedError):
        voting.cast_vote(C, True, at(10, 10))


def test_four_rejections_with_five_members_reject_only_after_fourth():
    state, ledger, voting = _engine(member_count=5)
    sub = ledger.record_submission(B, MediaKind.VIDEO, at(10, 9))
    voters = [A, C, "900@s.whatsapp.net", "901@s.whatsapp.net"]

    outcomes = [voting.cast_vote(v, False, at(10, 10)).outcome for v in voters]

    assert outcomes == [Outcome.OPEN, Outcome.OPEN, Outcome.OPEN, Outcome.REJECTED]
    assert sub.outcome == Outcome.REJECTED
    assert sub.finalized is True


def test_revote_overwrites_and_moves_to_end_of_cast_order():
    state, ledger, voting = _engine(member_count=5)
    sub = ledger.record_submission(B, MediaKind.VIDEO, at(10, 9))

    voting.cast_vote(A, False, at(10, 10))
    voting.cast_vote(C, False, at(10, 10))
    voting.cast_vote(A, False, at(10, 11))

    assert list(sub.votes) == [C, A]
    assert sub.tally() == (0, 2)


def test_vote_uses_quoted_announcement_before_latest():
    state, ledger, voting = _engine()
    first = ledger.record_submission(B, MediaKind.VIDEO, at(10, 9))
    second = ledger.record_submission(B, MediaKind.VIDEO, at(10, 10))
    ledger.bind_announcement(first.id, "ann-first")

    result = voting.cast_vote(A, False, at(10, 11), quoted_message_id="ann-first")
    assert result.submission is first

    # 引用がなければ（または未知の ID なら）今日の最新投稿
    result = voting.cast_vote(A, False, at(10, 11), quoted_message_id="unknown")
    assert result.submission is second


def test_vote_without_target_is_unresolved():
    state, ledger, voting = _engine()

    with pytest.raises(UnresolvedVoteTargetError):
        voting.cast_vote(A, True, at(10, 10))


def test_off_cycle_submission_cannot_be_voted_on():
    state, ledger, voting = _engine()
    off = ledger.record_submission(A, MediaKind.VIDEO, at(10, 9))
    ledger.bind_announcement(off.id, "ann-off")

    with pytest.raises(UnresolvedVoteTargetError):
        voting.cast_vote(C, True, at(10, 10), quoted_message_id="ann-off")
    assert off.votes == {}


def test_finalized_submission_never_changes_outcome():
    state, ledger, voting = _engine()
    sub = ledger.record_submission(B, MediaKind.VIDEO, at(10, 9))
    voting.cast_vote(A, True, at(10, 10))

    for voter in (A, C):
        with pytest.raises(AlreadyFinalizedError):
            voting.cast_vote(voter, False, at(10, 11))

    assert voting.finalize(sub, Outcome.REJECTED, at(10, 12)) is None
    assert voting.force_finalize(sub, at(11, 5)) is None
    assert sub.outcome == Outcome.APPROVED
    assert sub.votes == {A: True}
