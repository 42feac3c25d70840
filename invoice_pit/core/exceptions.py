"""
請求書処理の例外
メッセージはそのまま利用者に表示される
"""


class InvoiceError(Exception):
    """請求書処理の基底例外"""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvoiceValidationError(InvoiceError):
    """入力値エラー（書き込み前に検出）"""

    status_code = 400


class SubscriptionLimitError(InvoiceError):
    """無料枠の上限到達"""

    status_code = 402


class PermissionDeniedError(InvoiceError):
    status_code = 403


class NotFoundError(InvoiceError):
    status_code = 404


class InvalidTransitionError(InvoiceError):
    """現在のステータスでは実行できない操作"""

    status_code = 409


class ConsistencyError(InvoiceError):
    """請求書と主催者側レコードの不整合"""

    status_code = 500


class PersistenceError(InvoiceError):
    """DB書き込み失敗"""

    status_code = 503
