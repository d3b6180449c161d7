# devmap
# Copyright (c) 2026 devmap authors
# SPDX-License-Identifier: Apache-2.0
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

import pytest

from devmap.__main__ import DevmapTool

MANIFEST = """\
config:
  register_address_type: u8
  default_byte_order: LE
Control:
  type: register
  address: 0x00
  size_bits: 16
  repeat: {count: 2, stride: 2}
  fields:
    enable: {base: bool, start: 0}
    mode:
      start: 1
      end: 3
      conversion:
        name: Mode
        variants: {Slow: 0, Fast: null}
Status:
  type: register
  address: 0x10
  size_bits: 8
  access: RO
"""

@pytest.fixture
def manifest(tmp_path):
    path = tmp_path / "device.yaml"
    path.write_text(MANIFEST)
    return path

def run(*args):
    return DevmapTool().run(list(args))

class TestCheck:
    def test_ok(self, manifest, capsys):
        assert run("check", str(manifest)) == 0
        out = capsys.readouterr().out
        assert "OK (2 objects, 1 enums)" in out

    def test_error(self, tmp_path, caplog):
        path = tmp_path / "bad.yaml"
        path.write_text(MANIFEST.replace("address: 0x10", "address: 0x00"))
        assert run("check", str(path)) == 1
        assert "share an address" in caplog.text

    def test_manifest_error(self, tmp_path, caplog):
        path = tmp_path / "bad.yaml"
        path.write_text("Control: {type: register}\n")
        assert run("check", str(path)) == 1
        assert "missing required key 'address'" in caplog.text

    def test_missing_file(self, tmp_path):
        assert run("check", str(tmp_path / "missing.yaml")) == 2

class TestDump:
    def test_containers(self, manifest, capsys):
        assert run("dump", str(manifest)) == 0
        out = capsys.readouterr().out
        assert "Capabilities" in out
        assert "0x0, 0x2" in out
        assert "read, write, modify" in out
        assert "LE/LSB0" in out

    def test_fields(self, manifest, capsys):
        assert run("dump", "--fields", str(manifest)) == 0
        out = capsys.readouterr().out
        assert "Control (16 bits):" in out
        assert "enum" in out
        assert "yes" in out

    def test_no_header(self, manifest, capsys):
        assert run("dump", "-H", str(manifest)) == 0
        assert "Capabilities" not in capsys.readouterr().out

    def test_tree(self, manifest, capsys):
        assert run("dump", "--tree", str(manifest)) == 0
        out = capsys.readouterr().out
        assert out == "- register Control @0x0 [2 x 0x2]\n- register Status @0x10\n"

class TestTool:
    def test_no_command(self, capsys):
        assert run() == 1
        assert "usage" in capsys.readouterr().out

    def test_verbosity(self, manifest):
        assert run("check", "-v", "-v", str(manifest)) == 0
        assert run("check", "-q", str(manifest)) == 0
