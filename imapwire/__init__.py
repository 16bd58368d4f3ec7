"""Parsing of the IMAP4rev1 wire format: fields, dates, mailboxes, messages and responses."""

__version__ = "0.1.0"