"""
tskpay core package.

Embedded persistence for the TSK Pay club record-keeping application:
- Generic record storage and schema migrations (`tskpay.database`)
- A Typer-based CLI over the same commands the desktop shell uses
  (`tskpay.cli`)

Configuration:
- Shared, project-wide names and filesystem anchors live in
  `tskpay.global_config`.
"""
