"""Setup configuration for the snipbook-backend package."""

from setuptools import find_packages, setup

setup(
    name="snipbook-backend",
    version="0.1.0",
    packages=find_packages(include=["app", "app.*", "snip_shapes", "snip_shapes.*"]),
    python_requires=">=3.9",
    install_requires=[
        "fastapi",
        "uvicorn",
        "python-multipart",
        "pillow>=9.1",
        "numpy",
        "pydantic>=2",
        "pydantic-settings",
    ],
    extras_require={
        "dev": [
            "pytest",
            "pytest-cov",
            "httpx",
            "black",
            "flake8",
            "mypy",
            "isort",
        ],
    },
)
