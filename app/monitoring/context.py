# app/monitoring/context.py
"""
Context helpers using contextvars for request/client/provider propagation.
"""
import contextvars

request_id_var = contextvars.ContextVar("request_id", default=None)
client_id_var = contextvars.ContextVar("client_id", default=None)
provider_id_var = contextvars.ContextVar("provider_id", default=None)

def set_request_context(request_id=None, client_id=None, provider_id=None):
    if request_id is not None:
        request_id_var.set(request_id)
    if client_id is not None:
        client_id_var.set(client_id)
    if provider_id is not None:
        provider_id_var.set(provider_id)

def get_request_context():
    return {
        "request_id": request_id_var.get(),
        "client_id": client_id_var.get(),
        "provider_id": provider_id_var.get(),
    }
