"""
Credit Dispute Engine - Synthetic Sample Report

A fabricated single-bureau report. Only served by TextSalvage when
sample data is explicitly allowed (ALLOW_SAMPLE_DATA), and used by tests.
"""

SAMPLE_REPORT_TEXT = """TRANSUNION CREDIT REPORT
Report Number: TU-58213477
Report Date: 03/01/2024

PERSONAL INFORMATION
Name: JANE Q SAMPLE
Address: 1420 MAPLE AVE
SPRINGFIELD, IL 62704
SSN: XXX-XX-1234
Date of Birth: 1985
Phone: (217) 555-0142
Employer: ACME LOGISTICS
Also Known As: JANE SAMPLE

ACCOUNTS

CAPITAL ONE BANK USA
Account Number: 5178XXXXXXXX1234
Account Type: Revolving Credit Card
Balance: $1,250.00
Credit Limit: $5,000
Payment Status: Current
Date Opened: 06/15/2016
Date Reported: 02/15/2024

MIDLAND CREDIT MANAGEMENT
Account Number: 8842XXXX
Account Type: Collection
Balance: $640
Payment Status: Collection account
Date Opened: 01/10/2021
Date Reported: 02/01/2024
Remarks: Placed for collection

NAVIENT SOLUTIONS
Account Number: 9001XXXX5521
Account Type: Student Loan
Balance: $12,480.40
Payment Status: 30 days late
Date Opened: 09/01/2012
Date Reported: 02/10/2024

DEPT OF ED / AIDVANTAGE
Account Number: 9001XXXX7734
Account Type: Student Loan
Balance: $12,480.00
Payment Status: Current
Date Opened: 09/01/2012
Date Reported: 02/12/2024

INQUIRIES
01/05/2022 CAPITAL ONE
03/18/2023 AMERICAN EXPRESS

PUBLIC RECORDS
Type: Chapter 7 Bankruptcy
Date Filed: 05/14/2013
Status: Discharged

END OF REPORT
"""
