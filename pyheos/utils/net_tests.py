import unittest

from pyheos.utils.net import split_host_port


class SplitHostPortTests(unittest.TestCase):
  """Tests for split_host_port"""

  def test_host_port(self):
    self.assertEqual(split_host_port("192.168.1.20:1255"), ("192.168.1.20", 1255))
    self.assertEqual(split_host_port("heos.local:8080"), ("heos.local", 8080))

  def test_ipv6(self):
    self.assertEqual(split_host_port("[::1]:1255"), ("::1", 1255))
    self.assertEqual(split_host_port("[fe80::1]", default_port=1255), ("fe80::1", 1255))
    self.assertEqual(split_host_port("fe80::1", default_port=1255), ("fe80::1", 1255))

  def test_default_port(self):
    self.assertEqual(split_host_port("192.168.1.20", default_port=1255), ("192.168.1.20", 1255))
    self.assertEqual(split_host_port("192.168.1.20:23", default_port=1255), ("192.168.1.20", 23))

  def test_invalid(self):
    cases = (
      "192.168.1.20",
      ":1255",
      "host:",
      "host:port",
      "host:0",
      "host:65536",
      "[::1",
      "[::1]x",
      "[]:1255",
    )
    for addr in cases:
      with self.subTest(addr=addr):
        with self.assertRaises(ValueError):
          split_host_port(addr)
