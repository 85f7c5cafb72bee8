"""Setup script for the FreeTimeBot application."""

from pathlib import Path

from setuptools import find_packages, setup

# Read the README file
readme_file = Path(__file__).parent / "README.md"
long_description = readme_file.read_text(encoding="utf-8") if readme_file.exists() else ""

# Read requirements, splitting off test-only dependencies
requirements_file = Path(__file__).parent / "requirements.txt"
requirements = []
dev_requirements = []

TEST_ONLY_PACKAGES = ("pytest", "icalendar")

if requirements_file.exists():
    for line in requirements_file.read_text().strip().split("\n"):
        line = line.strip()
        # Skip empty lines and comments
        if not line or line.startswith("#"):
            continue

        if any(package in line for package in TEST_ONLY_PACKAGES):
            dev_requirements.append(line)
        else:
            requirements.append(line)

setup(
    name="freetimebot",
    version="1.0.0",
    description="Free time remaining in your iCalendar feeds, within your working hours",
    long_description=long_description,
    long_description_content_type="text/markdown",
    author="FreeTimeBot Team",
    # Package configuration
    packages=find_packages(include=["freetimebot", "freetimebot.*"]),
    include_package_data=True,
    # Dependencies
    install_requires=requirements,
    extras_require={
        "dev": dev_requirements,
        "test": dev_requirements,
    },
    python_requires=">=3.9",
    classifiers=[
        "Development Status :: 4 - Beta",
        "Environment :: Console",
        "Intended Audience :: End Users/Desktop",
        "Operating System :: POSIX :: Linux",
        "Operating System :: MacOS",
        "Programming Language :: Python :: 3",
        "Topic :: Office/Business :: Scheduling",
        "Framework :: AsyncIO",
    ],
    keywords="calendar ics icalendar webcal free-time scheduling async",
    # Entry points
    entry_points={
        "console_scripts": [
            "freetimebot=freetimebot.cli:main",
        ],
    },
    zip_safe=False,
)
