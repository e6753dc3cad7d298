from setuptools import setup, find_packages

setup(
    name="voxlink",
    version="0.1.0",
    description="Status and remote-control plane for the voxlink dictation daemon",
    author="",
    python_requires=">=3.9",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "rich>=12.5.0",
        "click>=8.1.0",
        "pydantic>=2.0.0",
        "pyyaml>=6.0.0",
        "pypubsub>=4.0.3",
        "watchdog>=3.0.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "voxlink=voxlink.main:main",
        ],
    },
)
