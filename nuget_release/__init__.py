"""Publish NuGet packages whose declared version is not yet on the registry."""
