"""Audio processing for mp3-combiner.

Everything here works on plain Python lists of float samples. Compressed
containers are decoded and MP3 is encoded by shelling out to ffmpeg; the
rest (merging, resampling, WAV serialization) runs in-process.
"""
