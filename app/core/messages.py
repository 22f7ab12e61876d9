"""Localized message catalog for problem titles and email subjects."""

from app.core.config import get_settings

MESSAGES: dict[str, dict[str, str]] = {
    "ko": {
        "exception.title.unauthorized": "인증 실패",
        "exception.title.access-denied": "접근 거부",
        "exception.title.not-found": "리소스를 찾을 수 없음",
        "exception.title.validation-failed": "유효성 검증 실패",
        "exception.title.conflict": "리소스 충돌",
        "exception.title.internal-error": "서버 내부 오류",
        "error.auth.not-authenticated": "인증이 필요합니다.",
        "error.auth.invalid-session": "세션이 유효하지 않거나 만료되었습니다.",
        "error.auth.invalid-credentials": "아이디 또는 비밀번호가 올바르지 않습니다.",
        "error.auth.invalid-current-password": "현재 비밀번호가 일치하지 않습니다.",
        "error.auth.email-not-verified": "이메일 인증이 완료되지 않았습니다.",
        "error.access-denied": "접근 권한이 없습니다.",
        "error.user.not-found": "사용자를 찾을 수 없습니다.",
        "error.user.username-taken": "이미 사용 중인 사용자명입니다.",
        "error.user.email-taken": "이미 사용 중인 이메일입니다.",
        "error.validation": "요청 값이 올바르지 않습니다.",
        "error.verification.invalid-token": "유효하지 않거나 만료된 인증 토큰입니다.",
        "error.internal": "요청을 처리하는 중 오류가 발생했습니다.",
        "email.subject.signup-verification": "이메일 인증을 완료해주세요",
        "email.subject.email-change-verification": "이메일 변경 인증을 완료해주세요",
        "email.subject.welcome": "Board-Hole에 오신 것을 환영합니다!",
        "email.subject.email-changed": "이메일 주소가 성공적으로 변경되었습니다",
        "email.body.greeting": "안녕하세요, {name}님.",
        "email.body.signup-verification": "아래 링크를 눌러 이메일 인증을 완료해주세요.",
        "email.body.email-change-verification": "새 이메일 주소 {new_email} 확인을 위해 아래 링크를 눌러주세요.",
        "email.body.welcome": "Board-Hole 가입을 환영합니다!",
        "email.body.email-changed": "계정 이메일 주소가 {new_email}(으)로 변경되었습니다.",
        "email.body.token": "인증 코드: {token}",
        "email.body.link-label": "이메일 인증하기",
    },
    "en": {
        "exception.title.unauthorized": "Unauthorized",
        "exception.title.access-denied": "Access denied",
        "exception.title.not-found": "Resource not found",
        "exception.title.validation-failed": "Validation failed",
        "exception.title.conflict": "Resource conflict",
        "exception.title.internal-error": "Internal server error",
        "error.auth.not-authenticated": "Authentication is required.",
        "error.auth.invalid-session": "The session is invalid or has expired.",
        "error.auth.invalid-credentials": "Invalid username or password.",
        "error.auth.invalid-current-password": "The current password does not match.",
        "error.auth.email-not-verified": "Email address has not been verified.",
        "error.access-denied": "You do not have permission to access this resource.",
        "error.user.not-found": "User not found.",
        "error.user.username-taken": "Username is already in use.",
        "error.user.email-taken": "Email is already in use.",
        "error.validation": "The request contains invalid values.",
        "error.verification.invalid-token": "The verification token is invalid or has expired.",
        "error.internal": "An error occurred while processing the request.",
        "email.subject.signup-verification": "Please verify your email",
        "email.subject.email-change-verification": "Please verify your new email",
        "email.subject.welcome": "Welcome to Board-Hole!",
        "email.subject.email-changed": "Your email address has been changed",
        "email.body.greeting": "Hello, {name}.",
        "email.body.signup-verification": "Click the link below to verify your email address.",
        "email.body.email-change-verification": "Click the link below to confirm your new address {new_email}.",
        "email.body.welcome": "Thanks for joining Board-Hole!",
        "email.body.email-changed": "Your account email address is now {new_email}.",
        "email.body.token": "Verification code: {token}",
        "email.body.link-label": "Verify email",
    },
}


def get_message(key: str, locale: str | None = None, **params: object) -> str:
    """Look up a message in the given (or configured) locale; unknown keys return the key."""
    catalog = MESSAGES.get(locale or get_settings().LOCALE, MESSAGES["en"])
    template = catalog.get(key) or MESSAGES["en"].get(key, key)
    return template.format(**params) if params else template
