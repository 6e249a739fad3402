#!/usr/bin/env python3
#
# Copyright (c) 2020-2021 Tatu Ylonen.  See LICENSE and https://ylonen.org

from setuptools import setup

with open("README.md", "r") as f:
    long_description = f.read()

setup(name="postmarkup",
      version="0.1.0",
      description="Incremental renderer for imageboard post bodies: inline markup, post links and hash commands",
      long_description=long_description,
      long_description_content_type="text/markdown",
      author="Tatu Ylonen",
      author_email="ylo@clausal.com",
      license="MIT",
      scripts=[],
      package_dir={"": "src"},
      packages=["postmarkup"],
      python_requires=">=3.9",
      install_requires=["lru-dict", "pygments"],
      extras_require={"test": ["pytest"]},
      keywords=[
          "imageboard",
          "forum",
          "markup",
          "parser",
          "live editing",
      ],
      classifiers=[
          "Development Status :: 3 - Alpha",
          "Intended Audience :: Developers",
          "License :: OSI Approved :: MIT License",
          "Natural Language :: English",
          "Operating System :: POSIX :: Linux",
          "Programming Language :: Python",
          "Programming Language :: Python :: 3 :: Only",
          "Topic :: Text Processing",
          "Topic :: Text Processing :: Markup",
          ])
