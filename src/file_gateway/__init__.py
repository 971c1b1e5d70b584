"""
File Gateway: a small HTTP service that stores single-file image uploads
under a per-user directory, lists them, serves them statically and deletes
them by URL.
"""
