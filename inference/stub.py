from .base import ModelBackend
from .types import ModelRequest, ModelResponse


class StubModelBackend(ModelBackend):
    """
    Deterministic fake model for local runs and tests.

    Never touches the network. Prompts containing the marker "[fail]"
    produce a recoverable error so the apology path can be exercised.
    """

    def __init__(self, reply: str = "This is a stubbed reply."):
        self.reply = reply
        self.calls: list[ModelRequest] = []

    def generate(self, request: ModelRequest) -> ModelResponse:
        self.calls.append(request)

        if "[fail]" in request.prompt:
            return ModelResponse(
                status="recoverable_error",
                error_type="invalid_output",
                metadata={"backend": "stub", "trace_id": request.trace_id},
            )

        return ModelResponse(
            status="success",
            output=self.reply,
            metadata={"backend": "stub", "trace_id": request.trace_id},
        )
