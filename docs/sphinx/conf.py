# Copyright 2026 clanglex Contributors
# SPDX-License-Identifier: Apache-2.0

"""Sphinx configuration for clanglex documentation."""

project = "clanglex"
author = "clanglex Contributors"
release = "0.1.0"

extensions: list[str] = ["sphinx.ext.autodoc"]

html_theme = "alabaster"
