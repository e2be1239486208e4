"""boto3 session and client helpers."""
