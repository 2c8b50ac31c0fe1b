"""RPC handler modules for rpc_server.

Handlers take the DocumentService as their first argument and keyword
parameters (snake_case) after it:
- blocks: block append/get, document create/read, Markdown import/export
"""
