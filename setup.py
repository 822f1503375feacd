from setuptools import find_packages, setup

setup(
    name="vocfeat",
    version="0.1.0",
    description="Streaming LPCNet-style feature extraction for 16 kHz speech.",
    author="Araray Velho",
    author_email="araray@gmail.com",
    packages=find_packages(include=["vocfeat", "vocfeat.*"]),
    python_requires=">=3.9",
    install_requires=[
        "numpy",
        "scipy",
        "librosa",
        "soundfile",
        "click",
        "rich",
        "pydantic>=2",
        "toml",
    ],
    extras_require={
        "test": [
            "pytest",
            "pytest-mock",
        ],
    },
    entry_points={
        "console_scripts": [
            "vocfeat=vocfeat.cli.main:cli",
        ],
    },
)
