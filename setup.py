"""GatePass setup - Door check-in that keeps working offline."""
from setuptools import setup, find_packages

setup(
    name="gatepass",
    version="1.0.0",
    description="GatePass: offline-first QR attendance verification for club events",
    packages=find_packages(include=["gatepass", "gatepass.*", "gatepass_cli", "gatepass_cli.*"]),
    python_requires=">=3.10",
    install_requires=[
        "click>=8.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "gatepass=gatepass_cli.main:cli",
        ],
    },
)
