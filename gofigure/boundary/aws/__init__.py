"""AWS boundary: S3 artifact storage."""

from gofigure.boundary.aws.s3_client import S3ArtifactClient

__all__ = ["S3ArtifactClient"]
