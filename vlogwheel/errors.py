# vlogwheel/errors.py


class WheelError(Exception):
    """ホイール処理のエラー基底クラス。code はログやレスポンス用の識別子。"""

    code = "wheel_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class EmptyRosterError(WheelError):
    code = "empty_roster"


class UnresolvedVoteTargetError(WheelError):
    code = "unresolved_vote_target"


class AlreadyFinalizedError(WheelError):
    code = "already_finalized"

    def __init__(self, message: str, submission_id: str):
        super().__init__(message)
        self.submission_id = submission_id


class NotificationDeliveryError(WheelError):
    code = "notification_delivery_failure"

    def __init__(self, message: str, target_id: str):
        super().__init__(message)
        self.target_id = target_id


class RosterUnavailableError(WheelError):
    code = "roster_unavailable"


class PersistenceError(WheelError):
    """スナップショットの書き込み失敗。呼び出し元の操作にとっては致命的。"""

    code = "persistence_failure"
