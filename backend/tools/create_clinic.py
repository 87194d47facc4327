#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
クリニックと管理者アカウントをオフラインで作成・更新するメンテナンススクリプト。

機能:
- `clinic_settings` にクリニックID（問診 URL のスラッグ）を登録
- 管理者メールアドレスとパスワード（bcrypt ハッシュ）を設定
- プリンター送信先メールアドレス・使用テンプレートIDを任意で設定
- 既に存在するクリニックIDの場合は指定した項目のみ上書き

使い方:
  python backend/tools/create_clinic.py sakura-dental --email admin@example.com
  python backend/tools/create_clinic.py sakura-dental --email admin@example.com --password NEWPASS --printer printer@example.com

DB パスの決定:
- 環境変数 INTAKE_DB があればそれを使用
- なければ backend/intake/app.sqlite3 を既定とする
"""

from __future__ import annotations

import argparse
import logging
import re
import sys
from getpass import getpass
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[1]))

from intake.db import DEFAULT_DB_PATH, init_db, upsert_clinic_settings  # noqa: E402

CLINIC_ID_RE = re.compile(r"^[a-z0-9][a-z0-9-]{1,62}$")
EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def create_clinic(
    db_path: str,
    clinic_id: str,
    admin_email: str,
    password: str,
    printer_email: str | None = None,
    template_id: str | None = None,
) -> dict:
    if not CLINIC_ID_RE.match(clinic_id):
        raise SystemExit("エラー: クリニックIDは英小文字・数字・ハイフンで入力してください。")
    if not EMAIL_RE.match(admin_email):
        raise SystemExit("エラー: 管理者メールアドレスの形式が正しくありません。")
    if printer_email is not None and not EMAIL_RE.match(printer_email):
        raise SystemExit("エラー: プリンターのメールアドレスの形式が正しくありません。")
    if len(password) < 8:
        raise SystemExit("エラー: パスワードは8文字以上で入力してください。")

    init_db(db_path)
    row = upsert_clinic_settings(
        clinic_id,
        printer_email=printer_email,
        admin_email=admin_email,
        admin_password=password,
        template_id=template_id,
        db_path=db_path,
    )
    logging.warning("clinic_admin_provisioned clinic_id=%s db=%s", clinic_id, db_path)
    return row


def main() -> None:
    parser = argparse.ArgumentParser(description="クリニックと管理者アカウントの作成・更新")
    parser.add_argument("clinic_id", help="クリニックID（問診 URL のスラッグ）")
    parser.add_argument("--email", dest="email", required=True, help="管理者メールアドレス")
    parser.add_argument("--password", dest="password", help="管理者パスワード（8文字以上）")
    parser.add_argument("--printer", dest="printer_email", help="プリンター送信先メールアドレス")
    parser.add_argument("--template", dest="template_id", help="使用する問診テンプレートID（既定: standard）")
    parser.add_argument("--db", dest="db_path", default=DEFAULT_DB_PATH, help=f"DBファイルパス (既定: {DEFAULT_DB_PATH})")
    args = parser.parse_args()

    pw = args.password
    if not pw:
        print("管理者パスワードを入力してください（8文字以上）")
        pw1 = getpass("Password: ")
        pw2 = getpass("Confirm : ")
        if pw1 != pw2:
            raise SystemExit("エラー: 確認用パスワードが一致しません。")
        pw = pw1

    logging.basicConfig(level=logging.INFO)
    create_clinic(args.db_path, args.clinic_id, args.email, pw, args.printer_email, args.template_id)
    print(f"完了: クリニック {args.clinic_id} を登録しました。")


if __name__ == "__main__":
    main()
