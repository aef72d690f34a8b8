from setuptools import setup, find_packages

setup(
    name="readsynth",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "numpy>=1.19.0",
        "pandas>=1.1.0",
        "biopython>=1.78",
        "matplotlib>=3.3.0",
        "tqdm>=4.50.0",
        "scipy>=1.5.0",
        "pyyaml>=5.3"
    ],
    extras_require={
        "tests": ["pytest>=6.0"]
    },
    entry_points={
        "console_scripts": [
            "readsynth=readsynth.cli:main"
        ]
    },
    author="Your Name",
    author_email="your.email@example.com",
    description="A long-read sequencing simulator with ground truth for benchmarking",
    long_description=open("README.md").read(),
    long_description_content_type="text/markdown",
    url="https://github.com/yourusername/ReadSynth",
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Topic :: Scientific/Engineering :: Bio-Informatics",
        "Intended Audience :: Science/Research"
    ],
    python_requires=">=3.8",
)
