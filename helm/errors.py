class ChartRenderError(Exception):
    pass


class ServiceAccountBindingError(ChartRenderError):
    """The rendered chart has no ServiceAccount carrying the IAM role annotation."""

    def __init__(self, service_account_name: str, reason: str):
        self.service_account_name = service_account_name
        self.reason = reason
        super().__init__(f"service account {service_account_name!r}: {reason}")
