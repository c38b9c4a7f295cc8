"""Domain layer: workflow, versioning and DOCX handling."""
