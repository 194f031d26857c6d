"""calckit - Calculator core with financial, programmer and unit tools."""
from setuptools import setup, find_packages

setup(
    name="calckit",
    version="1.0.0",
    description="Keypress-driven calculator engine with financial, programmer and unit tools",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "click>=8.1.0",
        "rich>=13.0.0",
        "questionary>=2.0.0",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
    entry_points={
        "console_scripts": [
            "calckit=calckit.cli:main",
            "ck=calckit.cli:main",  # Short alias
        ],
    },
    python_requires=">=3.10",
)
