"""Command-line viewer for GStreamer video streams.

Opens a camera, a URI or an arbitrary appsink pipeline, prints a heartbeat
with the measured FPS and runs until end of stream or an error.

    gst-video-stream --camera_index 0
    gst-video-stream --source_uri rtsp://camera.local/stream
    gst-video-stream videotestsrc ! videoconvert ! appsink
"""

import logging
import sys
from datetime import datetime
from typing import Optional, Tuple

import click

from gst_video_stream.config import load_stream_config
from gst_video_stream.errors import StreamError
from gst_video_stream.heartbeat import Heartbeat
from gst_video_stream.stream import VideoStream
from gst_video_stream.types import MessageKind, StreamConfig

logger = logging.getLogger(__name__)

USAGE = (
    "Please provide GStreamer command line, camera index (--camera_index option) "
    "or source uri (--source_uri option)."
)


def open_stream(
    camera_index: int,
    source_uri: Optional[str],
    pipeline: Tuple[str, ...],
    synchronized: bool,
    config: StreamConfig,
    runtime=None,
) -> VideoStream:
    """Create the stream for the selected source.

    Raises:
        StreamError: If the pipeline cannot be built
    """
    if camera_index != -1:
        return VideoStream.from_camera(camera_index, config=config, runtime=runtime)
    if source_uri:
        return VideoStream.from_uri(
            source_uri, synchronized=synchronized, config=config, runtime=runtime
        )
    return VideoStream(" ".join(pipeline), synchronized=synchronized, config=config, runtime=runtime)


def run(stream: VideoStream, heartbeat: Heartbeat, timeout: float = 0.0) -> bool:
    """Play ``stream`` until EOS or ERROR, then dispose it.

    Returns:
        True if the stream ended with a message, False on timeout or interrupt
    """

    def on_error(error, debug):
        click.echo(f"\nERROR: {getattr(error, 'message', error)} ({debug})")

    def on_end_of_stream():
        click.echo("\n=== End Of Stream ===")

    stream.on_frame.subscribe(heartbeat.on_frame)
    stream.on_error.subscribe(on_error)
    stream.on_end_of_stream.subscribe(on_end_of_stream)

    click.echo(f"\nStarting GStreamer video stream at {datetime.now()}.")
    click.echo(f"Command line: {stream.descriptor}")

    ended = False
    try:
        stream.play()
        heartbeat.start()
        click.echo("Started")
        ended = stream.wait_for_message(MessageKind.EOS | MessageKind.ERROR, timeout)
    except KeyboardInterrupt:
        click.echo("\nInterrupted")
    finally:
        heartbeat.stop()
        stream.dispose()

    click.echo(f"\nStream stopped at {datetime.now()}.")
    return ended


@click.command(
    context_settings={"ignore_unknown_options": True, "allow_interspersed_args": False}
)
@click.option(
    "--camera_index",
    type=int,
    default=-1,
    help="Camera device index to use as video source",
)
@click.option("--source_uri", type=str, default=None, help="URI to use as video source")
@click.option(
    "--sync/--no-sync",
    default=False,
    help="Synchronize frame delivery to the pipeline clock",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="YAML configuration file",
)
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.argument("pipeline", nargs=-1, type=click.UNPROCESSED)
def main(camera_index, source_uri, sync, config_path, verbose, pipeline):
    """Stream raw video frames from a camera, a URI or an appsink PIPELINE."""
    if camera_index == -1 and not source_uri and not pipeline:
        click.echo(USAGE)
        return

    if camera_index != -1 and source_uri:
        raise click.UsageError("--camera_index and --source_uri are mutually exclusive")

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        config = load_stream_config(config_path)
    except ValueError as e:
        click.echo(f"Configuration error: {e}", err=True)
        sys.exit(1)

    try:
        stream = open_stream(camera_index, source_uri, pipeline, sync, config)
    except StreamError as e:
        click.echo(f"GStreamer pipeline creating failure: {e}.", err=True)
        sys.exit(1)

    run(stream, Heartbeat())


if __name__ == "__main__":
    main()
