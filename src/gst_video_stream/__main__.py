from gst_video_stream.cli import main

main()
