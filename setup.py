from setuptools import setup

setup(
    name="nif",
    version="0.1.0",
    install_requires=["numpy"],
    extras_require={
        "test": ["pytest"],
    },
    packages=["nif"],

    entry_points = {
        "console_scripts": [
            "nifpak=nif.tools:main_pack",
            "nifunpak=nif.tools:main_unpack",
            "nifinfo=nif.tools:main_info",
        ],
    },
)
