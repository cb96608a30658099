from __future__ import annotations  # Re-export llm_gateway public API

from .llm_gateway import CompletionFn, HttpClient, HttpResponse, LlmGatewayError, complete, completion_fn

__all__ = ["CompletionFn", "HttpClient", "HttpResponse", "LlmGatewayError", "complete", "completion_fn"]
