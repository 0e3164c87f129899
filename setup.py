from setuptools import find_packages, setup

setup(
    name="transcriptor",
    version="1.0.0",
    description="YouTube transcript extraction and management tool",
    packages=find_packages(include=["transcriptor", "transcriptor.*"]),
    install_requires=[line for line in open("requirements-core.txt").read().splitlines() if line],
    extras_require={
        "test": ["pytest>=7.0"],
    },
    python_requires=">=3.8",
    entry_points={
        "console_scripts": [
            "transcriptor=transcriptor.cli:main",
        ],
    },
)
