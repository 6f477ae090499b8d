#!/usr/bin/env python3
"""
Salesforce CLI Wrapper

Author: Ken Brill
Version: 1.0
Date: October 2026
License: MIT License

Thin wrapper around the `sf` command line. Every call runs with --json and
the parsed envelope is returned; anything other than status 0 raises
SalesforceCLIError.
"""
import json
import logging
import subprocess
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

# sObject Tree API accepts at most 200 records per request
TREE_IMPORT_LIMIT = 200


class SalesforceCLIError(RuntimeError):
    """
    Raised when an `sf` command fails.

    Args:
        message: Human readable error
        command: The argument list that was executed
        errors: Per-record error messages pulled from the CLI response
    """

    def __init__(self, message, command=None, errors=None):
        super().__init__(message)
        self.command = command or []
        self.errors = errors or []


class SalesforceCLI:
    """
    Runs `sf` commands against a single org alias.

    Args:
        target_org: Org alias or username passed as --target-org
        timeout: Seconds to wait for each subprocess
    """

    def __init__(self, target_org: str, timeout: int = 120):
        self.target_org = target_org
        self.timeout = timeout

    def _execute_sf_command(self, args: List[str], cwd: Optional[str] = None) -> Dict[str, Any]:
        command = ['sf'] + list(args) + ['--target-org', self.target_org, '--json']
        logger.debug("> %s", " ".join(command))

        try:
            result = subprocess.run(
                command,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                check=False,
                cwd=cwd
            )
        except FileNotFoundError as e:
            raise SalesforceCLIError(
                "'sf' command not found. Make sure the Salesforce CLI is installed and in your PATH.",
                command
            ) from e
        except subprocess.TimeoutExpired as e:
            raise SalesforceCLIError(f"sf command timed out after {self.timeout} seconds", command) from e

        try:
            response = json.loads(result.stdout) if result.stdout else {}
        except json.JSONDecodeError as e:
            raise SalesforceCLIError(
                f"Could not parse sf output: {(result.stdout or result.stderr)[:500]}",
                command
            ) from e

        if result.returncode != 0 or response.get('status', 1) != 0:
            message = response.get('message') or result.stderr or 'Unknown error'
            raise SalesforceCLIError(message, command, _collect_record_errors(response))

        return response

    def query_records(self, query: str, all_rows: bool = False) -> List[Dict[str, Any]]:
        """
        Run a SOQL query and return the records.

        Args:
            query: SOQL query text
            all_rows: Include deleted and merged records (ALL ROWS)

        Returns:
            list: Record dictionaries, 'attributes' key included
        """
        args = ['data', 'query', '--query', ' '.join(query.split())]
        if all_rows:
            args.append('--all-rows')
        response = self._execute_sf_command(args)
        return response.get('result', {}).get('records', [])

    def import_tree(self, sobject: str, records: List[Dict[str, Any]]) -> List[str]:
        """
        Insert records through the sObject Tree API.

        A single request is all-or-nothing, so callers must not pass more
        than TREE_IMPORT_LIMIT records.

        Args:
            sobject: Object API name, e.g. 'ContentDocumentLink'
            records: Field dictionaries without Id

        Returns:
            list: Ids of the created records, in input order
        """
        if not records:
            return []
        if len(records) > TREE_IMPORT_LIMIT:
            raise ValueError(f"import_tree accepts at most {TREE_IMPORT_LIMIT} records, got {len(records)}")

        tree = {'records': []}
        for idx, record in enumerate(records, 1):
            row = {'attributes': {'type': sobject, 'referenceId': f'{sobject}Ref{idx}'}}
            row.update(record)
            tree['records'].append(row)

        with tempfile.TemporaryDirectory(prefix='filekeeper_') as temp_dir:
            tree_file = Path(temp_dir) / f'{sobject}.json'
            with open(tree_file, 'w', encoding='utf-8') as f:
                json.dump(tree, f)
            response = self._execute_sf_command(['data', 'import', 'tree', '--files', str(tree_file)])

        # Results come back keyed by referenceId, so restore input order
        created = {
            row.get('refId') or row.get('referenceId'): row.get('id')
            for row in response.get('result', [])
        }
        return [created.get(f'{sobject}Ref{idx}') for idx in range(1, len(records) + 1)]

    def run_apex(self, source: str) -> Dict[str, Any]:
        """
        Execute anonymous Apex and return the result block.

        Raises SalesforceCLIError when compilation or execution fails, even
        though `sf apex run` reports those with status 0.
        """
        with tempfile.TemporaryDirectory(prefix='filekeeper_') as temp_dir:
            apex_file = Path(temp_dir) / 'anonymous.apex'
            apex_file.write_text(source, encoding='utf-8')
            response = self._execute_sf_command(['apex', 'run', '--file', str(apex_file)])

        result = response.get('result', {})
        if not result.get('compiled', True):
            raise SalesforceCLIError(f"Apex compile error: {result.get('compileProblem')}", ['apex', 'run'])
        if not result.get('success', True):
            raise SalesforceCLIError(f"Apex execution failed: {result.get('exceptionMessage')}", ['apex', 'run'])
        return result

    def delete_records(self, record_ids: List[str]) -> None:
        """
        Delete records by Id in one all-or-nothing Apex transaction.

        Args:
            record_ids: Ids of any object type
        """
        record_ids = [record_id for record_id in record_ids if record_id]
        if not record_ids:
            return
        id_list = ', '.join(f"'{record_id}'" for record_id in record_ids)
        self.run_apex(f"Database.delete(new List<Id>{{ {id_list} }}, true);\n")

    def get_org_info(self) -> Dict[str, Any]:
        """Return the org details reported by `sf org display`."""
        response = self._execute_sf_command(['org', 'display'])
        return response.get('result', {})


def _collect_record_errors(response: Dict[str, Any]) -> List[str]:
    """Pull per-record error messages out of a failed tree import or DML response."""
    errors = []
    data = response.get('data') or {}
    results = data.get('results') if isinstance(data, dict) else None
    for row in results or []:
        for error in row.get('errors', []):
            errors.append(f"{error.get('statusCode', 'ERROR')}: {error.get('message', '')}")
    return errors
