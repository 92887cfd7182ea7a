from linkedin_login.models.account import LinkedInAccount, SessionStatus

__all__ = [
    "LinkedInAccount",
    "SessionStatus",
]
