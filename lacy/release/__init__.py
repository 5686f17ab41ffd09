"""Release domain: versions, metadata records, resolution and publishing."""
