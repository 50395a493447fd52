class TweetPipelineError(Exception):
    """base exception for scheduling/posting errors"""
    pass


class NotFoundError(TweetPipelineError):
    """raised when a referenced tweet or account does not exist"""
    pass


class AuthRefreshError(TweetPipelineError):
    """raised when the provider rejects a token refresh"""
    pass


class PostError(TweetPipelineError):
    """raised when the platform rejects a post"""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class DataIntegrityError(TweetPipelineError):
    """raised when a tweet references an account that no longer exists"""
    pass


class ContentGenerationError(TweetPipelineError):
    """raised when no model could produce a tweet draft"""
    pass
