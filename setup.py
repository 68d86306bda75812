"""
Installation setup for pokebridge
"""
import configparser
import pathlib

import setuptools

# Establish project directory
project_root: pathlib.Path = pathlib.Path(__file__).resolve().parent

# Read config details to determine version-ing
config_file = project_root.joinpath("pokebridge/resources/pokebridge.properties")
config = configparser.ConfigParser()
if config_file.is_file():
    config.read(str(config_file))

setuptools.setup(
    name="pokebridge",
    version=config.get("Bridge", "version", fallback="0.1.0+fallback"),
    description="Cross-catalog set mapping and card pricing enrichment for the Pokemon TCG",
    long_description=project_root.joinpath("README.md").open(encoding="utf-8").read()
    if project_root.joinpath("README.md").is_file()
    else "",
    long_description_content_type="text/markdown",
    license="MIT",
    classifiers=[
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Natural Language :: English",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3 :: Only",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python",
        "Topic :: Database",
    ],
    keywords=[
        "Card Games",
        "Collectible",
        "JSON",
        "Pokemon",
        "Pricing",
        "Trading Cards",
    ],
    python_requires=">=3.10",
    include_package_data=True,
    packages=setuptools.find_packages(exclude=["tests", "tests.*"]),
    package_data={"pokebridge": ["resources/*.json", "resources/*.properties"]},
    install_requires=project_root.joinpath("requirements.txt")
    .open(encoding="utf-8")
    .readlines()
    if project_root.joinpath("requirements.txt").is_file()
    else [],  # Use the requirements file, if able
    extras_require={"test": ["pytest", "responses"]},
    entry_points={"console_scripts": ["pokebridge=pokebridge.__main__:main"]},
)
