# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
'''
This example walks through the volume operations a file-manager core uses.

Setup:
    # Configure credentials
    # Create ~/.s3fm/credentials.yaml with:
    # default:
    #   access_key_id: your_access_key_id
    #   secret_access_key: your_secret_access_key
    #   bucket: your-bucket

Usage:
    python volume_operations.py
'''
import io
import uuid

from s3fm import S3Volume, VolumeOptions

def main():
    # Work under a fresh prefix so the example never touches existing keys
    root = f"/s3fm-example-{uuid.uuid4()}"
    options = VolumeOptions.from_profile().with_overrides(path=root)
    volume = S3Volume.connect(options)

    try:
        # Create a directory marker and an empty file
        docs = volume.create_directory(root, "docs").value
        print(f"Created directory: {volume.to_logical(docs)}")

        path = volume.create_file(docs, "hello.txt").value
        print(f"Created file: {volume.to_logical(path)}")

        # Replace the file content
        volume.save(io.BytesIO(b"Hello, World!"), docs, "hello.txt", "text/plain")
        record = volume.stat(path)
        print(f"File size: {record.size} bytes, type {record.mime}")

        # Read it back
        outcome = volume.open_for_read(path)
        if outcome:
            try:
                print(f"Content: {outcome.value.read().decode()}")
            finally:
                volume.close(outcome.value, path)

        # List the tree
        print("Entries under the root:")
        for child in volume.list(root):
            print(f"- {volume.basename(child)} (has subdirectories: {volume.has_subdirectories(child)})")

        # Rename is not available on an object store
        outcome = volume.move(path, root, "renamed.txt")
        print(f"move supported: {not outcome.is_unsupported}")

        # Clean up: the file first, then the directory marker
        volume.delete(path)
        volume.delete(docs)
        print("Deleted example entries")

    finally:
        volume.client.close()

if __name__ == "__main__":
    main()
