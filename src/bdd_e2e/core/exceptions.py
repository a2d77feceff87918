class BDDE2EError(Exception):
    """Base exception for bdd-e2e"""
    pass


class ConfigurationError(BDDE2EError):
    """Configuration-related errors"""
    pass


class BrowserLaunchError(BDDE2EError):
    """Browser, session or page could not be opened for a scenario"""
    pass


class ResourceUnavailableError(BDDE2EError):
    """A world handle was used while not established"""
    resource = "resource"

    def __init__(self, message: str = None):
        super().__init__(message or f"No {self.resource} available on World")


class NoBrowserAvailableError(ResourceUnavailableError):
    resource = "browser"


class NoSessionAvailableError(ResourceUnavailableError):
    resource = "session"


class NoPageAvailableError(ResourceUnavailableError):
    resource = "page"


class ExecutionError(BDDE2EError):
    """Error during scenario execution"""
    pass


class UndefinedStepError(ExecutionError):
    """No step definition matches a step"""

    def __init__(self, keyword: str, text: str, snippet: str = ""):
        self.keyword = keyword
        self.text = text
        self.snippet = snippet
        super().__init__(f"Undefined step: {keyword} {text}")


class PendingStepError(ExecutionError):
    """Step definition exists but is not implemented yet"""

    def __init__(self, message: str = "Step is pending"):
        super().__init__(message)


class StepTimeoutError(ExecutionError):
    """Step did not finish within the configured timeout"""
    pass


class ReportError(BDDE2EError):
    """Error while writing a report"""
    pass
