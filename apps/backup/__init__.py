"""
Backup App - Scheduled listmonk Backup and Report

Responsibilities:
- Pull lists, subscribers, campaigns, templates, bounces, import jobs and media
- Write one timestamped CSV per resource
- Download media assets and keep deduplicated local copies
- Delete CSV backups older than the retention period
- Save a text report and email it

Output:
- backup/<resource>_[ddMMyyyy_HHmmss].csv
- backup/media/<asset files>
- reports/backup_report_[ddMMyyyy_HHmmss].txt
"""
