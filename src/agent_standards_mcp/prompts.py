"""
Prompt texts shown to MCP clients.

- SYSTEM_PROMPT: sent as server instructions during initialization
- LIST_STANDARDS_DESCRIPTION / GET_STANDARDS_DESCRIPTION: tool descriptions
- LIST_STANDARDS_PREAMBLE / FOLLOW_STANDARDS_PREAMBLE: text placed before
  tool output so the agent knows what to do with it
"""

SYSTEM_PROMPT = """\
This server provides coding standards: curated guidance documents that \
describe how work must be done in this environment.

Before starting a task, call `list_standards` to see which standards exist, \
pick the ones relevant to the task, and load them with `get_standards`. \
Follow the loaded standards for the rest of the task. When standards \
conflict with general habits, the standards win."""

LIST_STANDARDS_DESCRIPTION = """\
List the available coding standards with a short description of each. \
Call this before starting a task to find the standards that apply to it, \
then load them with `get_standards`."""

GET_STANDARDS_DESCRIPTION = """\
Get the full text of one or more coding standards by name. Use the names \
returned by `list_standards`. Unknown names are ignored."""

NO_STANDARDS_FOUND = "No standards found."

LIST_STANDARDS_PREAMBLE = """\
Available standards are listed below as "<name>: <description>". Select \
every standard relevant to the current task and load them with \
`get_standards` before continuing."""

FOLLOW_STANDARDS_PREAMBLE = """\
The standards below apply to the current task. Follow them strictly; each \
standard's full text is enclosed in a markdown code block."""
