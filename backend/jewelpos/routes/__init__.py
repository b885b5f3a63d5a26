# Overview: API blueprints.
