# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
'''
This example reads and writes files through a bucket mounted with s3fm.

Writes are staged locally and stored as one object when the file is closed;
directories are marker objects, so mkdir works but rename does not.

Setup:
    # Install the s3fm package
    pip install s3fm

    # Install FUSE on your system
    # On Ubuntu/Debian:
    sudo apt-get install fuse

    # On CentOS/RHEL:
    sudo yum install fuse

    # On macOS (using Homebrew):
    brew install macfuse

    # Configure credentials
    # Create ~/.s3fm/credentials.yaml with:
    # default:
    #   access_key_id: your_access_key_id
    #   secret_access_key: your_secret_access_key

    # Create a mount point
    mkdir -p /mnt/s3fm

Usage:
    # Mount a bucket
    python -m s3fm.fuse <bucket> <mountpoint>

    # Example
    python -m s3fm.fuse my-bucket /mnt/s3fm

    # Unmount when done
    # On Linux
    fusermount -u /mnt/s3fm

    # On macOS
    umount /mnt/s3fm

Troubleshooting:
    # Enable debug logging
    export S3FM_LOG_LEVEL=DEBUG
    python -m s3fm.fuse <bucket> <mountpoint>

    # Run with sudo if permission issues occur
    sudo python -m s3fm.fuse <bucket> <mountpoint>

    # Check if FUSE is properly installed
    which fusermount  # Linux
    which mount_macfuse  # macOS

'''
import errno
import os
import sys

def main():
    if len(sys.argv) != 2:
        print("Usage: python fuse_operations.py <mountpoint>")
        sys.exit(1)

    mountpoint = sys.argv[1]
    directory = os.path.join(mountpoint, "example-dir")
    example_file = os.path.join(directory, "example.txt")

    # Create a directory (stored as a marker object)
    os.makedirs(directory, exist_ok=True)
    print(f"Directory created: {directory}")

    # Write to a file; the object is stored when the file is closed
    with open(example_file, 'w') as f:
        f.write("Hello FUSE")
    print(f"File created and written: {example_file}")

    # Read from the file
    with open(example_file, 'r') as f:
        print(f"Content read from file: {f.read()}")

    print(f"Directory listing: {os.listdir(directory)}")

    # Rename is reported as unsupported
    try:
        os.rename(example_file, example_file + ".bak")
    except OSError as e:
        if e.errno != errno.ENOTSUP:
            raise
        print("Rename is not supported on this filesystem")

    # Clean up
    os.remove(example_file)
    os.rmdir(directory)
    print(f"Removed {directory}")

if __name__ == '__main__':
    main()
