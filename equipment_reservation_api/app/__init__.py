"""
Application package initializer.

The project is organised into ``core`` (configuration, logging, the
entity store, security and errors), ``schemas`` (pydantic models),
``services`` (business logic over the store) and ``api`` (versioned
FastAPI routers exposing the services).
"""
