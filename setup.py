"""
Setup script for mentalmath-adaptive.

The adaptive personalization engine behind the mental-arithmetic and logic
training platform. It serves three roles:

1. Session analysis - Score completed sessions and update learner profiles
2. Personalization - Tune difficulty, timing and content mix of new sessions
3. Real-time adaptation - Retune remaining exercises while a session runs
"""

from setuptools import find_packages, setup

setup(
    name="mentalmath-adaptive",
    version="1.0.0",
    description="Adaptive personalization engine for mental-arithmetic and logic training",
    long_description=open("README.md", encoding="utf-8").read() if __import__("os").path.exists("README.md") else "",
    long_description_content_type="text/markdown",
    author="Mental Math Platform",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.10",
    install_requires=[
        # Config & Validation
        "pydantic>=2.0.0",
        "pydantic-settings>=2.0.0",
        # Numerics
        "numpy>=1.24.0",
        # Logging
        "loguru>=0.7.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-asyncio>=0.21.0",
            "pytest-cov>=4.0.0",
            "ruff>=0.1.0",
            "mypy>=1.0.0",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Intended Audience :: Education",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Education",
        "Topic :: Education :: Computer Aided Instruction (CAI)",
    ],
    keywords="learning adaptive personalization education mental-arithmetic",
)
