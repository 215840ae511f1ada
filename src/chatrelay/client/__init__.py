from .session import ChatSession, error_message
from .state import Phase, RequestState

__all__ = ["ChatSession", "Phase", "RequestState", "error_message"]
