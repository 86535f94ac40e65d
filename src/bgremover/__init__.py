"""bgremover - remove the background of a still image."""

__version__ = "1.0.0"


async def remove_background(reference: str) -> str:
    """
    Remove the background of an image using the shared, settings-configured remover.

    Args:
        reference: Local path, file:// URI or http(s) URL

    Returns:
        file:// URI of the resulting PNG
    """
    from bgremover.processing.processor import get_shared_remover

    return await get_shared_remover().remove_background(reference)


__all__ = ["__version__", "remove_background"]
