"""YouTube transcript question answering.

This package fetches a video's captions, indexes them as overlapping chunks in
a vector store, and answers questions using only the retrieved chunks.
"""
