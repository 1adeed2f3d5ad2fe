"""Image Hosting Service Package."""

__version__ = "0.1.0"
__description__ = (
    "Serverless image hosting service using AWS Lambda, S3, SQS, DynamoDB and SQL"
)

__all__ = ["handlers", "core"]
