"""galmode — visual-novel style playback of a chat transcript.

Messages from a host conversation are split into frames (one line of text,
a speaker and a background each), revealed with a typewriter effect and
navigated like a visual novel. Replies that are still being generated are
merged into the playlist as they stream in.
"""
