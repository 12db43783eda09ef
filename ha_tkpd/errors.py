"""Shared error types.

Every fatal condition of a run is one of these. Library code raises them and
`app.main` is the only place that turns them into a log line + exit status.
"""

from __future__ import annotations


class TrackerError(Exception):
    """Base class for errors that abort a run."""

    code = "error"


class InputError(TrackerError):
    """Bad URL or bad credential combination. Raised before any network I/O."""

    code = "input"


class RemoteError(TrackerError):
    """Tokopedia answered with an explicit error payload."""

    code = "remote"


class ShapeMismatch(TrackerError):
    """The API response no longer has the fields we read.

    Usually means Tokopedia changed their API and this tool needs updating.
    """

    code = "shape"


class FetchError(TrackerError):
    """The HTTP request itself failed (network, status, non-JSON body)."""

    code = "fetch"


class PublishError(TrackerError):
    """An MQTT connect, publish or disconnect failed."""

    code = "publish"


class WorkerJoinError(TrackerError):
    """The MQTT event worker died, queued messages may be lost."""

    code = "worker"
