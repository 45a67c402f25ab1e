"""Setup file for the multi-host video uploader."""

from setuptools import find_packages, setup

setup(
    name="multihost-uploader",
    version="0.1.0",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    install_requires=[
        "fastapi",
        "uvicorn",
        "pydantic",
        "python-multipart",
        "python-dotenv",
        "requests",
        "tenacity",
    ],
    extras_require={
        "test": [
            "pytest",
            "httpx",
        ],
    },
    python_requires=">=3.10",
)
