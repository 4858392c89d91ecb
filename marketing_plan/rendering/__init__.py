"""Document rendering for plan downloads and email attachments."""
