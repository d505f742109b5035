"""Request-scoped values that services read without threading the Request through."""

from contextvars import ContextVar

# set by the request_context middleware in app.main
client_ip_var: ContextVar[str] = ContextVar("client_ip", default="")
user_agent_var: ContextVar[str] = ContextVar("user_agent", default="")
