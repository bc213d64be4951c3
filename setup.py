from setuptools import setup, find_packages

setup(
    name="aws-bulk",
    version="0.1.0",
    description="Bulk AWS operations (SQS, DynamoDB) with chunking, bounded concurrency and retries",
    author="aws-bulk maintainers",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    python_requires=">=3.10",
    install_requires=[
        "boto3>=1.28.0",
        "botocore>=1.31.0",
        "pydantic>=2.0.0",
        "structlog>=23.1.0",
        "tenacity>=8.2.0,<9.1.3",
        "typer>=0.9.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.4.0",
            "pytest-asyncio>=0.21.0",
            "moto[sqs,dynamodb]>=5.0.0",
        ],
    },
    entry_points={
        "console_scripts": ["aws-bulk = aws_bulk.cli:main"],
    },
)
