"""Shared constants for ifiltercmd."""

from __future__ import annotations

from typing import Dict, List

PROGRAM_NAME: str = "ifiltercmd"

EXIT_SUCCESS: int = 0
EXIT_FAILURE: int = 1
EXIT_INTERRUPTED: int = 130

# Extension appended to every input path in multiple-file mode.
MULTI_FILE_OUTPUT_SUFFIX: str = ".txt"

TEXT_EXTENSIONS: List[str] = [
    ".csv",
    ".htm",
    ".html",
    ".ini",
    ".json",
    ".log",
    ".md",
    ".text",
    ".txt",
    ".xml",
    ".yaml",
    ".yml",
]

MAX_EMBEDDED_DEPTH: int = 5

# Characters translated to likely ASCII look-alikes when cleanup is enabled.
CLEANUP_TRANSLATIONS: Dict[str, str] = {
    "\u00a0": " ",
    "\u2002": " ",
    "\u2003": " ",
    "\u2009": " ",
    "\u2010": "-",
    "\u2011": "-",
    "\u2012": "-",
    "\u2013": "-",
    "\u2014": "-",
    "\u2015": "-",
    "\u2018": "'",
    "\u2019": "'",
    "\u201a": "'",
    "\u201b": "'",
    "\u201c": '"',
    "\u201d": '"',
    "\u201e": '"',
    "\u201f": '"',
    "\u2022": "*",
    "\u2026": "...",
    "\u2032": "'",
    "\u2033": '"',
    "\u00ab": '"',
    "\u00bb": '"',
    "\u2039": "'",
    "\u203a": "'",
    "\ufeff": "",
    "\u000b": "\n",
    "\r": "\n",
}

# Soft hyphen and zero width space.
WORD_BREAK_CHARACTERS: str = "\u00ad\u200b"

USAGE: str = """\
Usage: ifiltercmd <input file> [-o <output file>] [-M] [-c[+/-]] [-e[+/-]] [-p[+/-]] [-m[+/-]]
                  [-te <timeout>] [-ti <timeout>] [-w <char>] [-v] [-l <log file>] [-?]

ifiltercmd is a simple command line front end for extracting text from documents.
Options start with - or /. On POSIX systems / is only an option prefix before a known
option name, so /x is read as a file path rather than an unknown option.
Options ('+' activates an option (default if missing), '-' deactivates it)
<input file>     : Source file to extract text from
-o <output file> : Destination for output. If not provided output is written to the console.
-M               : Multiple files. <input file> is a pattern and a txt file is created for each match.
-e               : Doesn't read embedded content, e.g. an attachment inside an e-mail (default false)
-p               : The metadata properties of a document are also returned (default false)

less important options:
-c               : Do cleanup characters (default true). Translates certain characters to likely ASCII characters
-m               : Read input file completely into memory before acting (default false)
-w <char>        : Character written in place of word breaks (soft hyphens, zero width spaces)
-te <timeout>    : Timeout in milliseconds for large files, failing once the timeout elapsed
-ti <timeout>    : Timeout in milliseconds for large files, keeping the text read before the timeout elapsed
-v               : Verbose diagnostic logging
-l <log file>    : Also write diagnostic logging to a rotating log file
-?               : Show this help

Example: ifiltercmd report.pdf -o output.txt -c- -e- -m+ -ti 5000

Exit code is 0 for success (you still have to check for an empty output file) and 1 for errors"""


__all__ = [
    "CLEANUP_TRANSLATIONS",
    "EXIT_FAILURE",
    "EXIT_INTERRUPTED",
    "EXIT_SUCCESS",
    "MAX_EMBEDDED_DEPTH",
    "MULTI_FILE_OUTPUT_SUFFIX",
    "PROGRAM_NAME",
    "TEXT_EXTENSIONS",
    "USAGE",
    "WORD_BREAK_CHARACTERS",
]
