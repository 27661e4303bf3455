"""reqflow — purchase requisition approval and supplier quotation workflow."""
