from .session import SessionMiddleware, get_session

__all__ = [
	"SessionMiddleware",
	"get_session",
]
