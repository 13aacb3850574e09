"""Exception base shared by the clip workflow services."""


class ClipAcquisitionError(Exception):
    """Base class for failures raised while acquiring a clip.

    Upstream client failures are the exception: they derive from
    ``zapclip.clients.twitch.UpstreamError`` instead.
    """


__all__ = ["ClipAcquisitionError"]
