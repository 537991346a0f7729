"""
TaskTrack setup.py — Package configuration and CLI entry point.
"""

from setuptools import find_packages, setup

setup(
    name="tasktrack",
    version="1.0.0",
    description="TaskTrack — multi-user task manager API",
    packages=find_packages(include=["tasktrack", "tasktrack.*"]),
    python_requires=">=3.11",
    entry_points={
        "console_scripts": [
            "tasktrack=tasktrack.cli:main",
        ],
    },
    install_requires=[
        "fastapi>=0.110",
        "uvicorn>=0.29",
        "sqlalchemy>=2.0",
        "pydantic>=2.5",
        "bcrypt>=4.1",
        "cryptography>=42.0",
        "pyyaml>=6.0",
        "httpx>=0.27",
    ],
    extras_require={
        "postgres": [
            "psycopg2-binary>=2.9",
        ],
        "test": [
            "pytest>=8.0",
        ],
    },
)
