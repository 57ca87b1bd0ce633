"""Error taxonomy: feed errors are recovered with synthetic data, geolocation errors become alerts."""


class FeedError(Exception):
    UNREACHABLE = "unreachable"
    BAD_STATUS = "bad_status"
    MALFORMED = "malformed"

    def __init__(self, reason: str, detail: str = ""):
        self.reason = reason
        self.detail = detail
        super().__init__(f"{reason}: {detail}" if detail else reason)


class GeolocationError(Exception):
    UNSUPPORTED = "unsupported"
    DENIED = "denied"
    TIMEOUT = "timeout"

    MESSAGES = {
        UNSUPPORTED: "Your browser does not support geolocation.",
        DENIED: "Could not get your location. Check your browser settings.",
        TIMEOUT: "Could not get your location. Check your browser settings.",
    }

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(reason)

    @property
    def user_message(self) -> str:
        return self.MESSAGES.get(self.reason, self.MESSAGES[self.DENIED])
