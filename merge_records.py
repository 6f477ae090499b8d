#!/usr/bin/env python3
"""
Merge Records and Keep Their Files

Author: Ken Brill
Version: 1.0
Date: October 2026
License: MIT License

Merges duplicate Accounts, Contacts or Leads into a master record and moves
the duplicates' file links (ContentDocumentLink) onto the master. The
platform drops those links when it deletes the duplicates.

Usage:
    python3 merge_records.py --sobject Account --master 001... --duplicate 001... [--duplicate 001...]
"""
import argparse
import logging
import os
import sys

from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from filekeeper_pkg.errors import MergeFileKeeperError, UpstreamWriteFailure
from filekeeper_pkg.reconcile import ContentDocumentLinkStore, DryRunLinkStore, MergeContext
from filekeeper_pkg.utils.config import load_config
from filekeeper_pkg.utils.record_utils import is_salesforce_id, soql_id_list, to_18_char_id
from filekeeper_pkg.utils.salesforce_cli import SalesforceCLI, SalesforceCLIError

console = Console()
logger = logging.getLogger(__name__)

# Database.merge accepts a master plus at most two duplicates
MAX_DUPLICATES = 2


def build_merge_apex(sobject, master_id, duplicate_ids):
    """Anonymous Apex that merges duplicate_ids into master_id."""
    duplicates = ', '.join(f"new {sobject}(Id = '{dup_id}')" for dup_id in duplicate_ids)
    return (
        f"{sobject} master = new {sobject}(Id = '{master_id}');\n"
        f"List<{sobject}> duplicates = new List<{sobject}>{{ {duplicates} }};\n"
        f"merge master duplicates;\n"
    )


def fetch_deleted_rows(sf_cli, sobject, record_ids):
    """Re-read merged records from the recycle bin to get their MasterRecordId."""
    query = (
        f"SELECT Id, MasterRecordId FROM {sobject} "
        f"WHERE Id IN {soql_id_list(record_ids)} AND IsDeleted = true"
    )
    return sf_cli.query_records(query, all_rows=True)


def merge_with_files(sf_cli, sobject, master_id, duplicate_ids, dedupe_siblings=False, dry_run=False):
    """
    Capture, merge and reconcile as one operation for a single merge event.

    Args:
        sf_cli: SalesforceCLI for the org
        sobject: 'Account', 'Contact' or 'Lead'
        master_id: Surviving record Id
        duplicate_ids: Ids merged into the master
        dedupe_siblings: Collapse repeated (master, document) pairs before insert
        dry_run: Capture and report only; no merge and no insert

    Returns:
        list: FileLink objects inserted (or that would be inserted on a dry run)
    """
    master_id = to_18_char_id(master_id)
    duplicate_ids = [to_18_char_id(dup_id) for dup_id in duplicate_ids]

    link_store = ContentDocumentLinkStore(sf_cli)
    if dry_run:
        link_store = DryRunLinkStore(link_store)

    context = MergeContext(link_store, dedupe_siblings=dedupe_siblings)
    context.before_delete(duplicate_ids)

    if dry_run:
        rows = [{'Id': dup_id, 'MasterRecordId': master_id} for dup_id in duplicate_ids]
    else:
        console.print(f"[cyan]Merging {len(duplicate_ids)} {sobject} record(s) into {master_id}...[/cyan]")
        sf_cli.run_apex(build_merge_apex(sobject, master_id, duplicate_ids))
        rows = fetch_deleted_rows(sf_cli, sobject, duplicate_ids)
        missing = set(duplicate_ids) - {to_18_char_id(row['Id']) for row in rows}
        if missing:
            logger.warning("Merged records not found in the recycle bin: %s", ', '.join(sorted(missing)))

    return context.after_delete(rows)


def print_links(links, title):
    if not links:
        console.print(f"[yellow]{title}: none[/yellow]")
        return
    table = Table(title=title)
    table.add_column("Master")
    table.add_column("ContentDocument")
    table.add_column("ShareType")
    table.add_column("Visibility")
    for link in links:
        table.add_row(link.linked_entity_id, link.content_document_id, link.share_type, link.visibility)
    console.print(table)


def main(argv=None):
    parser = argparse.ArgumentParser(description="Merge CRM records and keep their file attachments on the master.")
    parser.add_argument('-s', '--sobject', required=True, help='Account, Contact or Lead.')
    parser.add_argument('-m', '--master', required=True, help='Id of the record that survives the merge.')
    parser.add_argument('-d', '--duplicate', action='append', required=True,
                        help='Id of a record to merge into the master. Repeat for a second duplicate.')
    parser.add_argument('-t', '--target-alias', help='Salesforce org alias. Defaults to target_org_alias in config.json.')
    parser.add_argument('--dedupe-siblings', action='store_true',
                        help='Skip repeated documents shared by both duplicates instead of failing the insert.')
    parser.add_argument('--dry-run', action='store_true', help='Show which links would move without merging.')
    parser.add_argument('-v', '--verbose', action='store_true', help='Debug logging.')
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True
    )

    script_dir = os.path.dirname(os.path.abspath(__file__))
    try:
        config = load_config(script_dir)
    except MergeFileKeeperError as e:
        console.print(f"[red]Error: {e}[/red]")
        return 1

    if args.sobject not in config['allowed_sobjects']:
        console.print(f"[red]Error: {args.sobject} is not one of {', '.join(config['allowed_sobjects'])}.[/red]")
        return 1

    master_id = to_18_char_id(args.master)
    duplicate_ids = list(dict.fromkeys(to_18_char_id(dup_id) for dup_id in args.duplicate))
    if len(duplicate_ids) > MAX_DUPLICATES:
        console.print(f"[red]Error: at most {MAX_DUPLICATES} duplicates can be merged at once.[/red]")
        return 1
    for record_id in [master_id] + duplicate_ids:
        if not is_salesforce_id(record_id):
            console.print(f"[red]Error: '{record_id}' is not a valid record Id.[/red]")
            return 1
    if master_id in duplicate_ids:
        console.print("[red]Error: the master record cannot also be a duplicate.[/red]")
        return 1

    target_org_alias = args.target_alias or config['target_org_alias']
    if not target_org_alias:
        console.print("[red]Error: Target org alias not provided. Use --target-alias or configure 'target_org_alias' in config.json.[/red]")
        return 1

    sf_cli = SalesforceCLI(target_org=target_org_alias, timeout=config['cli_timeout_seconds'])
    dedupe_siblings = args.dedupe_siblings or config['dedupe_sibling_links']

    try:
        org_info = sf_cli.get_org_info()
        console.print(f"Connected to {org_info.get('instanceUrl', target_org_alias)} as {org_info.get('username', 'unknown user')}")
        links = merge_with_files(sf_cli, args.sobject, master_id, duplicate_ids, dedupe_siblings, args.dry_run)
    except (MergeFileKeeperError, SalesforceCLIError) as e:
        console.print(f"[red]Error: {e}[/red]")
        for error in getattr(e, 'errors', [])[:5]:
            console.print(f"  [red]{error}[/red]")
        if isinstance(e, UpstreamWriteFailure):
            print_links(e.links, "File links NOT moved (attach manually)")
            if e.committed:
                print_links(e.committed, "File links inserted before the failure (kept)")
        return 1

    print_links(links, "File links that would move" if args.dry_run else "File links moved")
    console.print("[green]Done.[/green]")
    return 0


if __name__ == "__main__":
    sys.exit(main())
