"""Domain exceptions raised by integrations and caught at the flow boundaries."""


class ChatGatewayError(Exception):
    """Outbound chat call (text, image, presence) failed."""


class PreviewGenerationError(Exception):
    """Background removal or statue synthesis did not produce an image."""


class CatalogSearchError(Exception):
    """Catalog lookup failed upstream."""
