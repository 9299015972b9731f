"""Setup script for the Japanese receipt and expense parsing toolkit."""

from setuptools import setup, find_packages
from pathlib import Path

# Read README
readme_path = Path(__file__).parent / "README.md"
long_description = readme_path.read_text(encoding="utf-8") if readme_path.exists() else ""

# Read requirements
requirements_path = Path(__file__).parent / "requirements.txt"
requirements = []
if requirements_path.exists():
    requirements = [
        line.strip() for line in requirements_path.read_text().strip().split('\n')
        if line.strip() and not line.startswith('#')
    ]

setup(
    name="kakeibo-ocr",
    version="1.0.0",
    description="Turn Japanese receipt OCR text and chat messages into structured, categorized expense records",
    long_description=long_description,
    long_description_content_type="text/markdown",
    author="",
    author_email="",
    url="",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    install_requires=requirements,
    extras_require={
        'gemini': ['google-generativeai>=0.5'],
        'test': ['pytest>=7.0', 'pytest-asyncio>=0.21'],
    },
    entry_points={
        'console_scripts': [
            'kakeibo=kakeibo_ocr.cli:cli',
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Operating System :: OS Independent",
        "Topic :: Office/Business :: Financial :: Accounting",
        "Topic :: Text Processing :: Linguistic",
    ],
    python_requires=">=3.10",
    include_package_data=True,
    package_data={
        "kakeibo_ocr": ["data/*.yml"],
    },
)
