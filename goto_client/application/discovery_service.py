"""
Discovery service - Semantic product search with filters and optional image.

An image given as a ``data:`` URL travels inside the JSON body; raw bytes
switch the same call to multipart/form-data with the other arguments sent
as form fields.
"""

from __future__ import annotations
from typing import Any, Dict, Iterable, Mapping, Optional, Union

from ..domain.interfaces.transport import BinaryPart, CancellationSignal
from ..domain.models.chat import ChatMessage, history_to_wire
from ..domain.models.errors import ValidationError
from ..domain.models.filters import FilterExpression, filter_to_wire
from ..domain.models.product import DiscoveryResponse
from .base import ResourceService

DISCOVERY_PATH = "/api/discovery"

ImageInput = Union[str, bytes, bytearray, BinaryPart]


def _coerce_image(image: Optional[ImageInput]) -> Union[None, str, BinaryPart]:
    if image is None:
        return None
    if isinstance(image, BinaryPart):
        if not image.content:
            raise ValidationError("Image payload is empty")
        return image
    if isinstance(image, (bytes, bytearray)):
        if not image:
            raise ValidationError("Image payload is empty")
        return BinaryPart(content=bytes(image), media_type="application/octet-stream", filename="image")
    if isinstance(image, str):
        if not image.startswith("data:") or "," not in image:
            raise ValidationError("Image string must be a base64 data URL (data:<type>;base64,...)")
        return image
    raise ValidationError(f"Unsupported image type: {type(image).__name__}")


class DiscoveryService(ResourceService):
    """Semantic search over the product catalog."""

    def search(
        self,
        query: str,
        filter: Optional[FilterExpression] = None,
        image: Optional[ImageInput] = None,
        chat_history: Optional[Iterable[Union[ChatMessage, Dict[str, Any]]]] = None,
        context: Optional[Mapping[str, Any]] = None,
        top_n: int = 10,
        include_confidence_message: bool = True,
        cancel: Optional[CancellationSignal] = None
    ) -> DiscoveryResponse:
        """Search products by meaning. Results keep the server's order."""
        if not isinstance(query, str) or not query.strip():
            raise ValidationError("query must be a non-empty string")
        if not isinstance(top_n, int) or isinstance(top_n, bool) or top_n < 1:
            raise ValidationError(f"top_n must be an integer >= 1, got {top_n!r}")
        if context is not None and not isinstance(context, Mapping):
            raise ValidationError("context must be a mapping")

        wire_filter = filter_to_wire(filter)
        wire_history = history_to_wire(chat_history) if chat_history is not None else None
        wire_image = _coerce_image(image)

        fields: Dict[str, Any] = {
            "query": query.strip(),
            "top_n": top_n,
            "includeConfidenceMessage": include_confidence_message,
        }
        if wire_filter is not None:
            fields["filter"] = wire_filter
        if wire_history is not None:
            fields["chatHistory"] = wire_history
        if context is not None:
            fields["context"] = dict(context)

        if isinstance(wire_image, BinaryPart):
            fields["image"] = wire_image
            self._logger.debug(f"Discovery with binary image ({len(wire_image.content)} bytes) as multipart")
            data = self._request_json("POST", DISCOVERY_PATH, form_fields=fields, cancel=cancel)
        else:
            if wire_image is not None:
                fields["image"] = wire_image
            data = self._request_json("POST", DISCOVERY_PATH, json_body=fields, cancel=cancel)
        return DiscoveryResponse.from_dict(data)
