from setuptools import setup, find_packages

setup(
    name="mp3stream",
    version="0.1.0",
    description="Streaming MP3 decoding session with bounded buffering, volume and mono downmix",
    author="",
    python_requires=">=3.8",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "av>=10.0.0",
        "numpy>=1.21.0",
        "pyyaml>=6.0.0",
        "pypubsub>=4.0.3",
    ],
    extras_require={
        "test": [
            "pytest>=7.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "mp3stream=mp3stream.main:main",
        ],
    },
)
