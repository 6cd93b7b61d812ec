import setuptools

setuptools.setup(
    name="dicedist",
    version="0.1.0",
    classifiers=["Programming Language :: Python :: 3"],
    packages=setuptools.find_packages(exclude=["tests"]),
    package_data={"dicedist": ["roll.lark", "settings.default.yaml"]},
    entry_points={"console_scripts": ["dicedist=dicedist.__main__:main"]},
    install_requires=["lark", "discord.py", "pyyaml", "plotly", "kaleido", "pandas"],
    extras_require={"test": ["pytest"]},
)
