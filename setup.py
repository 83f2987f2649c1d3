# setup.py
from setuptools import setup, find_packages

setup(
    name="site_digest",
    version="1.1.0",
    description="Screenshots, markdown blurbs and cropped thumbnails for a list of websites",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "aiohttp>=3.9",
        "beautifulsoup4>=4.12",
        "click>=8.1",
        "pydantic>=2.5",
        "PyYAML>=6.0",
        "Pillow>=10.0",
        "playwright>=1.40",
    ],
    extras_require={
        "test": [
            "pytest>=7.4",
            "pytest-asyncio>=0.23",
        ],
    },
    entry_points={
        "console_scripts": [
            "site-digest=site_digest.cli:digest_cli",
            "site-crop=site_digest.cli:crop_cli",
        ],
    },
    python_requires=">=3.11",
)
