"""klippod — vertical clip rendering for facecam + gameplay recordings.

Cut time ranges out of a landscape source, crop a facecam band and a
gameplay band from it, and stack them into a 1080x1920 clip with ffmpeg.
Runs as a CLI or as a Socket.IO server that streams progress.
"""
