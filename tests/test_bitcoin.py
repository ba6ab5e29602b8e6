from descriptorkit import constants
from descriptorkit import ecc
from descriptorkit import segwit_addr
from descriptorkit.bitcoin import (
    opcodes, script_num_to_bytes, _op_push, push_script, add_number_to_script,
    construct_script, pubkeyhash_to_p2pkh_script, scripthash_to_p2sh_script,
    base_encode, base_decode, EncodeBase58Check, DecodeBase58Check,
    BaseDecodeError, InvalidChecksum, serialize_privkey, deserialize_privkey,
    hash160_to_p2pkh, hash160_to_p2sh, hash_to_segwit_addr, address_to_script,
    script_to_address, is_address, is_segwit_address,
)
from descriptorkit.crypto import sha256, sha256d, hash_160
from descriptorkit.segwit_addr import DecodedBech32
from descriptorkit.util import BitcoinException, bfh

from . import DescriptorTestCase, as_testnet


class Test_bitcoin(DescriptorTestCase):

    def test_sha256d(self):
        self.assertEqual(b'\x95MZI\xfdp\xd9\xb8\xbc\xdb5\xd2R&x)\x95\x7f~\xf7\xfalt\xf8\x84\x19\xbd\xc5\xe8"\t\xf4',
                         sha256d(u"test"))

    def test_sha256(self):
        self.assertEqual("e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855",
                         sha256(b"").hex())

    def test_hash_160(self):
        pubkey = bfh("0279be667ef9dcbbac55a06295ce870b07029bfcdb2dce28d959f2815b16f81798")
        self.assertEqual("751e76e8199196d454941c45d1b3a323f1433bd6", hash_160(pubkey).hex())

    def test_op_push(self):
        self.assertEqual(_op_push(0x00), bfh('00'))
        self.assertEqual(_op_push(0x12), bfh('12'))
        self.assertEqual(_op_push(0x4b), bfh('4b'))
        self.assertEqual(_op_push(0x4c), bfh('4c4c'))
        self.assertEqual(_op_push(0xfe), bfh('4cfe'))
        self.assertEqual(_op_push(0xff), bfh('4cff'))
        self.assertEqual(_op_push(0x100), bfh('4d0001'))
        self.assertEqual(_op_push(0x1234), bfh('4d3412'))
        self.assertEqual(_op_push(0xfffe), bfh('4dfeff'))
        self.assertEqual(_op_push(0xffff), bfh('4dffff'))
        self.assertEqual(_op_push(0x10000), bfh('4e00000100'))
        self.assertEqual(_op_push(0x12345678), bfh('4e78563412'))

    def test_script_num_to_bytes(self):
        # test vectors from https://github.com/btcsuite/btcd/blob/fdc2bc867bda6b351191b5872d2da8270df00d13/txscript/scriptnum.go#L77
        self.assertEqual(script_num_to_bytes(0), b'')
        self.assertEqual(script_num_to_bytes(127), bfh('7f'))
        self.assertEqual(script_num_to_bytes(-127), bfh('ff'))
        self.assertEqual(script_num_to_bytes(128), bfh('8000'))
        self.assertEqual(script_num_to_bytes(-128), bfh('8080'))
        self.assertEqual(script_num_to_bytes(129), bfh('8100'))
        self.assertEqual(script_num_to_bytes(-129), bfh('8180'))
        self.assertEqual(script_num_to_bytes(256), bfh('0001'))
        self.assertEqual(script_num_to_bytes(-256), bfh('0081'))
        self.assertEqual(script_num_to_bytes(32767), bfh('ff7f'))
        self.assertEqual(script_num_to_bytes(-32767), bfh('ffff'))
        self.assertEqual(script_num_to_bytes(32768), bfh('008000'))
        self.assertEqual(script_num_to_bytes(-32768), bfh('008080'))

    def test_push_script(self):
        # https://github.com/bitcoin/bips/blob/master/bip-0062.mediawiki#push-operators
        self.assertEqual(push_script(b""), bytes([opcodes.OP_0]))
        self.assertEqual(push_script(b'\x07'), bfh('57'))
        self.assertEqual(push_script(b'\x10'), bytes([opcodes.OP_16]))
        self.assertEqual(push_script(b'\x81'), bytes([opcodes.OP_1NEGATE]))
        self.assertEqual(push_script(b'\x11'), bfh('0111'))
        self.assertEqual(push_script(75 * b'\x42'), bfh('4b' + 75 * '42'))
        self.assertEqual(push_script(76 * b'\x42'), bytes([opcodes.OP_PUSHDATA1]) + bfh('4c' + 76 * '42'))
        self.assertEqual(push_script(255 * b'\x42'), bytes([opcodes.OP_PUSHDATA1]) + bfh('ff' + 255 * '42'))
        self.assertEqual(push_script(256 * b'\x42'), bytes([opcodes.OP_PUSHDATA2]) + bfh('0001' + 256 * '42'))
        self.assertEqual(push_script(520 * b'\x42'), bytes([opcodes.OP_PUSHDATA2]) + bfh('0802' + 520 * '42'))

    def test_add_number_to_script(self):
        # https://github.com/bitcoin/bips/blob/master/bip-0062.mediawiki#numbers
        self.assertEqual(add_number_to_script(0), bytes([opcodes.OP_0]))
        self.assertEqual(add_number_to_script(1), bytes([opcodes.OP_1]))
        self.assertEqual(add_number_to_script(16), bytes([opcodes.OP_16]))
        self.assertEqual(add_number_to_script(-1), bytes([opcodes.OP_1NEGATE]))
        self.assertEqual(add_number_to_script(17), bfh('0111'))
        self.assertEqual(add_number_to_script(127), bfh('017f'))
        self.assertEqual(add_number_to_script(128), bfh('028000'))
        self.assertEqual(add_number_to_script(-128), bfh('028080'))
        self.assertEqual(add_number_to_script(32767), bfh('02ff7f'))
        self.assertEqual(add_number_to_script(32768), bfh('03008000'))
        self.assertEqual(add_number_to_script(2147483647), bfh('04ffffff7f'))

    def test_construct_script(self):
        pubkey = "0279be667ef9dcbbac55a06295ce870b07029bfcdb2dce28d959f2815b16f81798"
        self.assertEqual(
            bfh("21" + pubkey + "ac"),
            construct_script([pubkey, opcodes.OP_CHECKSIG]))
        self.assertEqual(
            bfh("5121" + pubkey + "51ae"),
            construct_script([1, bfh(pubkey), 1, opcodes.OP_CHECKMULTISIG]))
        # 20 keys need a pushed number rather than a small-int opcode
        self.assertEqual(
            bfh("0114"),
            construct_script([20]))
        with self.assertRaises(TypeError):
            construct_script([1.5])

    def test_standard_script_templates(self):
        h160 = bfh("28662c67561b95c79d2257d2a93d9d151c977e91")
        self.assertEqual("76a91428662c67561b95c79d2257d2a93d9d151c977e9188ac",
                         pubkeyhash_to_p2pkh_script(h160).hex())
        self.assertEqual("a91428662c67561b95c79d2257d2a93d9d151c977e9187",
                         scripthash_to_p2sh_script(h160).hex())

    def test_address_to_script(self):
        # bech32/bech32m native segwit, test vectors from BIP-0173 and BIP-0350
        self.assertEqual(address_to_script('BC1QW508D6QEJXTDG4Y5R3ZARVARY0C5XW7KV8F3T4').hex(), '0014751e76e8199196d454941c45d1b3a323f1433bd6')
        self.assertEqual(address_to_script('bc1pw508d6qejxtdg4y5r3zarvary0c5xw7kw508d6qejxtdg4y5r3zarvary0c5xw7kt5nd6y').hex(), '5128751e76e8199196d454941c45d1b3a323f1433bd6751e76e8199196d454941c45d1b3a323f1433bd6')
        self.assertEqual(address_to_script('BC1SW50QGDZ25J').hex(), '6002751e')
        self.assertEqual(address_to_script('bc1zw508d6qejxtdg4y5r3zarvaryvaxxpcs').hex(), '5210751e76e8199196d454941c45d1b3a323')
        self.assertEqual(address_to_script('bc1p0xlxvlhemja6c4dqv22uapctqupfhlxm9h8z3k2e72q4k9hcz7vqzk5jj0').hex(), '512079be667ef9dcbbac55a06295ce870b07029bfcdb2dce28d959f2815b16f81798')

        # base58 P2PKH
        self.assertEqual(address_to_script('14gcRovpkCoGkCNBivQBvw7eso7eiNAbxG').hex(), '76a91428662c67561b95c79d2257d2a93d9d151c977e9188ac')
        self.assertEqual(address_to_script('1BEqfzh4Y3zzLosfGhw1AsqbEKVW6e1qHv').hex(), '76a914704f4b81cadb7bf7e68c08cd3657220f680f863c88ac')

        # base58 P2SH
        self.assertEqual(address_to_script('35ZqQJcBQMZ1rsv8aSuJ2wkC7ohUCQMJbT').hex(), 'a9142a84cf00d47f699ee7bbc1dea5ec1bdecb4ac15487')
        self.assertEqual(address_to_script('3PyjzJ3im7f7bcV724GR57edKDqoZvH7Ji').hex(), 'a914f47c8954e421031ad04ecd8e7752c9479206b9d387')

    def test_invalid_addresses(self):
        # from BIP-0173
        self.assertFalse(is_address('tc1qw508d6qejxtdg4y5r3zarvary0c5xw7kg3g4ty'))
        self.assertFalse(is_address('bc1qw508d6qejxtdg4y5r3zarvary0c5xw7kv8f3t5'))
        self.assertFalse(is_address('BC13W508D6QEJXTDG4Y5R3ZARVARY0C5XW7KN40WF2'))
        self.assertFalse(is_address('bc1rw5uspcuh'))
        self.assertFalse(is_address('bc10w508d6qejxtdg4y5r3zarvary0c5xw7kw508d6qejxtdg4y5r3zarvary0c5xw7kw5rljs90'))
        self.assertFalse(is_address('BC1QR508D6QEJXTDG4Y5R3ZARVARYV98GJ9P'))
        self.assertFalse(is_address('bc1zw508d6qejxtdg4y5r3zarvaryvqyzf3du'))
        self.assertFalse(is_address('bc1gmk9yu'))

        # from BIP-0350
        self.assertFalse(is_address('bc1p0xlxvlhemja6c4dqv22uapctqupfhlxm9h8z3k2e72q4k9hcz7vqh2y7hd'))
        self.assertFalse(is_address('BC1S0XLXVLHEMJA6C4DQV22UAPCTQUPFHLXM9H8Z3K2E72Q4K9HCZ7VQ54WELL'))
        self.assertFalse(is_address('bc1qw508d6qejxtdg4y5r3zarvary0c5xw7kemeawh'))
        self.assertFalse(is_address('bc1p38j9r5y49hruaue7wxjce0updqjuyyx0kh56v8s25huc6995vvpql3jow4'))
        self.assertFalse(is_address('BC130XLXVLHEMJA6C4DQV22UAPCTQUPFHLXM9H8Z3K2E72Q4K9HCZ7VQ7ZWS8R'))
        self.assertFalse(is_address('bc1pw5dgrnzv'))
        self.assertFalse(is_address('bc1p0xlxvlhemja6c4dqv22uapctqupfhlxm9h8z3k2e72q4k9hcz7v8n0nx0muaewav253zgeav'))
        self.assertFalse(is_address('bc1p0xlxvlhemja6c4dqv22uapctqupfhlxm9h8z3k2e72q4k9hcz7v07qwwzcrf'))

        # testnet addresses are not valid on mainnet
        self.assertFalse(is_address('tb1qrp33g0q5c5txsp9arysrx4k6zdkfs4nce4xj0gdcccefvpysxf3q0sl5k7'))
        self.assertFalse(is_address('mutXcGt1CJdkRvXuN2xoz2quAAQYQ59bRX'))
        self.assertFalse(is_address("not an address"))
        with self.assertRaises(BitcoinException):
            address_to_script('2N3LSvr3hv5EVdfcrxg2Yzecf3SRvqyBE4p')

    def test_is_address_bad_checksums(self):
        self.assertTrue(is_address('1819s5TxxbBtuRPr3qYskMVC8sb1pqapWx'))
        self.assertFalse(is_address('1819s5TxxbBtuRPr3qYskMVC8sb1pqapWw'))

        self.assertTrue(is_address('3LrjLVnngqnaJeo3BQwMBg34iqYsjZjQUe'))
        self.assertFalse(is_address('3LrjLVnngqnaJeo3BQwMBg34iqYsjZjQUd'))

        self.assertTrue(is_address('bc1qxq64lrwt02hm7tu25lr3hm9tgzh58snfe67yt6'))
        self.assertFalse(is_address('bc1qxq64lrwt02hm7tu25lr3hm9tgzh58snfe67yt5'))

    def test_is_segwit_address(self):
        self.assertTrue(is_segwit_address('bc1qw508d6qejxtdg4y5r3zarvary0c5xw7kv8f3t4'))
        self.assertTrue(is_segwit_address('bc1p0xlxvlhemja6c4dqv22uapctqupfhlxm9h8z3k2e72q4k9hcz7vqzk5jj0'))
        self.assertFalse(is_segwit_address('14gcRovpkCoGkCNBivQBvw7eso7eiNAbxG'))
        self.assertFalse(is_segwit_address('35ZqQJcBQMZ1rsv8aSuJ2wkC7ohUCQMJbT'))
        self.assertFalse(is_segwit_address('bc1qw508d6qejxtdg4y5r3zarvary0c5xw7kv8f3t5'))

    def test_address_net_override(self):
        self.assertEqual('00201863143c14c5166804bd19203356da136c985678cd4d27a1b8c6329604903262',
                         address_to_script('tb1qrp33g0q5c5txsp9arysrx4k6zdkfs4nce4xj0gdcccefvpysxf3q0sl5k7',
                                           net=constants.BitcoinTestnet).hex())
        self.assertFalse(is_address('14gcRovpkCoGkCNBivQBvw7eso7eiNAbxG', net=constants.BitcoinTestnet))

    def test_script_to_address(self):
        self.assertEqual('14gcRovpkCoGkCNBivQBvw7eso7eiNAbxG',
                         script_to_address(bfh('76a91428662c67561b95c79d2257d2a93d9d151c977e9188ac')))
        self.assertEqual('35ZqQJcBQMZ1rsv8aSuJ2wkC7ohUCQMJbT',
                         script_to_address(bfh('a9142a84cf00d47f699ee7bbc1dea5ec1bdecb4ac15487')))
        self.assertEqual('bc1qw508d6qejxtdg4y5r3zarvary0c5xw7kv8f3t4',
                         script_to_address(bfh('0014751e76e8199196d454941c45d1b3a323f1433bd6')))
        self.assertEqual('bc1p0xlxvlhemja6c4dqv22uapctqupfhlxm9h8z3k2e72q4k9hcz7vqzk5jj0',
                         script_to_address(bfh('512079be667ef9dcbbac55a06295ce870b07029bfcdb2dce28d959f2815b16f81798')))
        self.assertEqual('mutXcGt1CJdkRvXuN2xoz2quAAQYQ59bRX',
                         script_to_address(bfh('76a9149da64e300c5e4eb4aaffc9c2fd465348d5618ad488ac'),
                                           net=constants.BitcoinTestnet))

    def test_script_to_address_no_address_form(self):
        # bare pubkey
        self.assertIsNone(script_to_address(
            bfh("210279be667ef9dcbbac55a06295ce870b07029bfcdb2dce28d959f2815b16f81798ac")))
        # bare 1-of-1 multisig
        self.assertIsNone(script_to_address(
            bfh("51210279be667ef9dcbbac55a06295ce870b07029bfcdb2dce28d959f2815b16f8179851ae")))
        self.assertIsNone(script_to_address(b""))
        self.assertIsNone(script_to_address(bfh("deadbeef")))

    def test_hash160_to_addresses(self):
        h160 = bfh("751e76e8199196d454941c45d1b3a323f1433bd6")
        self.assertEqual('1BgGZ9tcN4rm9KBzDn7KprQz87SZ26SAMH', hash160_to_p2pkh(h160))
        self.assertEqual('bc1qw508d6qejxtdg4y5r3zarvary0c5xw7kv8f3t4', hash_to_segwit_addr(h160, witver=0))
        self.assertEqual(bfh('a914751e76e8199196d454941c45d1b3a323f1433bd687'),
                         address_to_script(hash160_to_p2sh(h160)))

    def test_bech32_decode(self):
        # test vectors from BIP-0173
        self.assertEqual(DecodedBech32(segwit_addr.Encoding.BECH32, 'a', []),
                         segwit_addr.bech32_decode('A12UEL5L'))
        self.assertEqual(DecodedBech32(segwit_addr.Encoding.BECH32, 'a', []),
                         segwit_addr.bech32_decode('a12uel5l'))
        self.assertEqual(DecodedBech32(segwit_addr.Encoding.BECH32, 'abcdef', list(range(32))),
                         segwit_addr.bech32_decode('abcdef1qpzry9x8gf2tvdw0s3jn54khce6mua7lmqqqxw'))
        self.assertEqual(DecodedBech32(segwit_addr.Encoding.BECH32, '?', []),
                         segwit_addr.bech32_decode('?1ezyfcl'))
        with self.assertRaises(segwit_addr.SegwitAddrError):
            segwit_addr.bech32_decode('A12uEL5L')  # mixed case
        with self.assertRaises(segwit_addr.SegwitAddrError):
            segwit_addr.bech32_decode('pzry9x0s0muk')  # no separator


class Test_bitcoin_testnet(DescriptorTestCase):
    TESTNET = True

    def test_address_to_script(self):
        self.assertEqual(address_to_script('tb1qrp33g0q5c5txsp9arysrx4k6zdkfs4nce4xj0gdcccefvpysxf3q0sl5k7').hex(), '00201863143c14c5166804bd19203356da136c985678cd4d27a1b8c6329604903262')
        self.assertEqual(address_to_script('tb1qqqqqp399et2xygdj5xreqhjjvcmzhxw4aywxecjdzew6hylgvsesrxh6hy').hex(), '0020000000c4a5cad46221b2a187905e5266362b99d5e91c6ce24d165dab93e86433')
        self.assertEqual(address_to_script('tb1pqqqqp399et2xygdj5xreqhjjvcmzhxw4aywxecjdzew6hylgvsesf3hn0c').hex(), '5120000000c4a5cad46221b2a187905e5266362b99d5e91c6ce24d165dab93e86433')

        # base58 P2PKH
        self.assertEqual(address_to_script('mutXcGt1CJdkRvXuN2xoz2quAAQYQ59bRX').hex(), '76a9149da64e300c5e4eb4aaffc9c2fd465348d5618ad488ac')
        self.assertEqual(address_to_script('miqtaRTkU3U8rzwKbEHx3g8FSz8GJtPS3K').hex(), '76a914247d2d5b6334bdfa2038e85b20fc15264f8e5d2788ac')

        # base58 P2SH
        self.assertEqual(address_to_script('2N3LSvr3hv5EVdfcrxg2Yzecf3SRvqyBE4p').hex(), 'a9146eae23d8c4a941316017946fc761a7a6c85561fb87')
        self.assertEqual(address_to_script('2NE4ZdmxFmUgwu5wtfoN2gVniyMgRDYq1kk').hex(), 'a914e4567743d378957cd2ee7072da74b1203c1a7a0b87')

    def test_invalid_addresses(self):
        self.assertFalse(is_address('tb1qrp33g0q5c5txsp9arysrx4k6zdkfs4nce4xj0gdcccefvpysxf3q0sL5k7'))
        self.assertFalse(is_address('tb1qrp33g0q5c5txsp9arysrx4k6zdkfs4nce4xj0gdcccefvpysxf3pjxtptv'))
        self.assertFalse(is_address('tb1z0xlxvlhemja6c4dqv22uapctqupfhlxm9h8z3k2e72q4k9hcz7vqglt7rf'))
        self.assertFalse(is_address('tb1q0xlxvlhemja6c4dqv22uapctqupfhlxm9h8z3k2e72q4k9hcz7vq24jc47'))
        self.assertFalse(is_address('tb1p0xlxvlhemja6c4dqv22uapctqupfhlxm9h8z3k2e72q4k9hcz7vq47Zagq'))
        self.assertFalse(is_address('tb1p0xlxvlhemja6c4dqv22uapctqupfhlxm9h8z3k2e72q4k9hcz7vpggkg4j'))
        # mainnet addresses are not valid on testnet
        self.assertFalse(is_address('bc1qw508d6qejxtdg4y5r3zarvary0c5xw7kv8f3t4'))
        self.assertFalse(is_address('14gcRovpkCoGkCNBivQBvw7eso7eiNAbxG'))

    def test_script_to_address(self):
        self.assertEqual('tb1qrp33g0q5c5txsp9arysrx4k6zdkfs4nce4xj0gdcccefvpysxf3q0sl5k7',
                         script_to_address(bfh('00201863143c14c5166804bd19203356da136c985678cd4d27a1b8c6329604903262')))
        self.assertEqual('2N3LSvr3hv5EVdfcrxg2Yzecf3SRvqyBE4p',
                         script_to_address(bfh('a9146eae23d8c4a941316017946fc761a7a6c85561fb87')))


class Test_keyImport(DescriptorTestCase):

    priv_pub_addr = (
        {'priv': 'KzMFjMC2MPadjvX5Cd7b8AKKjjpBSoRKUTpoAtN6B3J9ezWYyXS6',
         'pub': '02c6467b7e621144105ed3e4835b0b4ab7e35266a2ae1c4f8baa19e9ca93452997',
         'address': '17azqT8T16coRmWKYFj3UjzJuxiYrYFRBR',
         'compressed': True},
        {'priv': 'Kzj8VjwpZ99bQqVeUiRXrKuX9mLr1o6sWxFMCBJn1umC38BMiQTD',
         'pub': '0352d78b4b37e0f6d4e164423436f2925fa57817467178eca550a88f2821973c41',
         'address': '1GXgZ5Qi6gmXTHVSpUPZLy4Ci2nbfb3ZNb',
         'compressed': True},
        {'priv': '5Hxn5C4SQuiV6e62A1MtZmbSeQyrLFhu5uYks62pU5VBUygK2KD',
         'pub': '04e5fe91a20fac945845a5518450d23405ff3e3e1ce39827b47ee6d5db020a9075422d56a59195ada0035e4a52a238849f68e7a325ba5b2247013e0481c5c7cb3f',
         'address': '1GPHVTY8UD9my6jyP4tb2TYJwUbDetyNC6',
         'compressed': False},
        {'priv': '5KhYQCe1xd5g2tqpmmGpUWDpDuTbA8vnpbiCNDwMPAx29WNQYfN',
         'pub': '048f0431b0776e8210376c81280011c2b68be43194cb00bd47b7e9aa66284b713ce09556cde3fee606051a07613f3c159ef3953b8927c96ae3dae94a6ba4182e0e',
         'address': '147kiRHHm9fqeMQSgqf4k35XzuWLP9fmmS',
         'compressed': False},
        {'priv': 'KyDWy5WbjLA58Zesh1o8m3pADGdJ3v33DKk4m7h8BD5zDKDmDFwo',
         'pub': '038c57657171c1f73e34d5b3971d05867d50221ad94980f7e87cbc2344425e6a1e',
         'address': 'bc1qpakeeg4d9ydyjxd8paqrw4xy9htsg532xzxn50',
         'compressed': True},
    )

    def test_public_key_from_private_key(self):
        for priv_details in self.priv_pub_addr:
            privkey, compressed = deserialize_privkey(priv_details['priv'])
            result = ecc.ECPrivkey(privkey).get_public_key_hex(compressed=compressed)
            self.assertEqual(priv_details['pub'], result)
            self.assertEqual(priv_details['compressed'], compressed)

    def test_address_from_public_key(self):
        for priv_details in self.priv_pub_addr:
            h160 = hash_160(bfh(priv_details['pub']))
            if priv_details['address'].startswith('bc1'):
                addr = hash_to_segwit_addr(h160, witver=0)
            else:
                addr = hash160_to_p2pkh(h160)
            self.assertEqual(priv_details['address'], addr)

    def test_serialize_privkey(self):
        for priv_details in self.priv_pub_addr:
            privkey, compressed = deserialize_privkey(priv_details['priv'])
            self.assertEqual(priv_details['priv'], serialize_privkey(privkey, compressed))

    def test_wif_with_invalid_magic_byte_for_compressed_pubkey(self):
        with self.assertRaises(BitcoinException):
            deserialize_privkey("KwFAa6AumokBD2dVqQLPou42jHiVsvThY1n25HJ8Ji8REf1wxAQb")

    def test_wif_bad_checksum(self):
        with self.assertRaises(InvalidChecksum):
            deserialize_privkey('KzMFjMC2MPadjvX5Cd7b8AKKjjpBSoRKUTpoAtN6B3J9ezWYyXS7')

    def test_wif_wrong_network(self):
        with self.assertRaises(BitcoinException):
            deserialize_privkey('KzMFjMC2MPadjvX5Cd7b8AKKjjpBSoRKUTpoAtN6B3J9ezWYyXS6',
                                net=constants.BitcoinTestnet)

    @as_testnet
    def test_wif_testnet(self):
        secret = bytes(31) + b'\x01'
        wif = serialize_privkey(secret, True)
        self.assertTrue(wif.startswith('c'))
        self.assertEqual((secret, True), deserialize_privkey(wif))
        wif_uncompressed = serialize_privkey(secret, False)
        self.assertTrue(wif_uncompressed.startswith('9'))
        self.assertEqual((secret, False), deserialize_privkey(wif_uncompressed))
        with self.assertRaises(BitcoinException):
            deserialize_privkey('KwDiBf89QgGbjEhKnhXJuH7LrciVrZi3qYjgd9M7rFU73sVHnoWn')

    def test_mainnet_wif_of_secret_one(self):
        secret = bytes(31) + b'\x01'
        self.assertEqual('KwDiBf89QgGbjEhKnhXJuH7LrciVrZi3qYjgd9M7rFU73sVHnoWn',
                         serialize_privkey(secret, True))
        self.assertEqual('5HpHagT65TZzG1PH3CSu63k8DbpvD8s5ip4nEB3kEsreAnchuDf',
                         serialize_privkey(secret, False))


class TestECKeys(DescriptorTestCase):

    G_COMPRESSED = "0279be667ef9dcbbac55a06295ce870b07029bfcdb2dce28d959f2815b16f81798"
    G_UNCOMPRESSED = ("0479be667ef9dcbbac55a06295ce870b07029bfcdb2dce28d959f2815b16f81798"
                      "483ada7726a3c4655da4fbfc0e1108a8fd17b448a68554199c47d08ffb10d4b8")
    TWO_G = "02c6047f9441ed7d6d3045406e95c07cd85c778e4b8cef3ca7abac09b95c709ee5"

    def test_compressed_and_uncompressed_agree(self):
        self.assertEqual(ecc.ECPubkey(bfh(self.G_COMPRESSED)), ecc.ECPubkey(bfh(self.G_UNCOMPRESSED)))
        self.assertEqual(self.G_UNCOMPRESSED,
                         ecc.ECPubkey(bfh(self.G_COMPRESSED)).get_public_key_hex(compressed=False))
        self.assertEqual(self.G_COMPRESSED,
                         ecc.ECPubkey(bfh(self.G_UNCOMPRESSED)).get_public_key_hex(compressed=True))

    def test_privkey_to_pubkey(self):
        privkey = ecc.ECPrivkey(bytes(31) + b'\x01')
        self.assertEqual(self.G_COMPRESSED, privkey.get_public_key_hex())
        self.assertEqual(bytes(31) + b'\x01', privkey.get_secret_bytes())

    def test_point_addition(self):
        g = ecc.ECPubkey(bfh(self.G_COMPRESSED))
        self.assertEqual(self.TWO_G, (g + g).get_public_key_hex())
        with self.assertRaises(TypeError):
            g + 1

    def test_invalid_points(self):
        with self.assertRaises(ecc.InvalidECPointException):
            ecc.ECPubkey(bfh("05" + self.G_COMPRESSED[2:]))
        with self.assertRaises(ecc.InvalidECPointException):
            ecc.ECPubkey(bfh(self.G_COMPRESSED[:-2]))
        with self.assertRaises(ecc.InvalidECPointException):
            # y does not match x
            ecc.ECPubkey(bfh(self.G_UNCOMPRESSED[:-2] + "b9"))
        with self.assertRaises(ecc.InvalidECPointException):
            ecc.ECPubkey(bfh("02" + "ff" * 32))

    def test_invalid_secrets(self):
        with self.assertRaises(ecc.InvalidECPointException):
            ecc.ECPrivkey(bytes(32))
        with self.assertRaises(ecc.InvalidECPointException):
            ecc.ECPrivkey(ecc.CURVE_ORDER.to_bytes(32, 'big'))
        with self.assertRaises(ecc.InvalidECPointException):
            ecc.ECPrivkey(bytes(31) + b'\x01' + b'\x00')
        self.assertTrue(ecc.is_secret_within_curve_range(ecc.CURVE_ORDER - 1))
        self.assertFalse(ecc.is_secret_within_curve_range(0))


class TestBaseEncode(DescriptorTestCase):

    def test_base58(self):
        data_hex = '0cd394bef396200774544c58a5be0189f3ceb6a41c8da023b099ce547dd4d8071ed6ed647259fba8c26382edbf5165dfd2404e7a8885d88437db16947a116e451a5d1325e3fd075f9d370120d2ab537af69f32e74fc0ba53aaaa637752964b3ac95cfea7'
        data_bytes = bfh(data_hex)
        data_base58 = base_encode(data_bytes)
        self.assertEqual("VuvZ2K5UEcXCVcogny7NH4Evd9UfeYipsTdWuU4jLDhyaESijKtrGWZTFzVZJPjaoC9jFBs3SFtarhDhQhAxkXosUD8PmUb5UXW1tafcoPiCp8jHy7Fe2CUPXAbYuMvAyrkocbe6",
                         data_base58)
        self.assertEqual(data_bytes,
                         base_decode(data_base58))

    def test_base58_leading_zeros(self):
        self.assertEqual("111", base_encode(bytes(3)))
        self.assertEqual(bytes(3), base_decode("111"))
        self.assertEqual(b"\x00\x00\x01", base_decode("112"))

    def test_base58_invalid_characters(self):
        with self.assertRaises(BaseDecodeError):
            base_decode("0OIl")
        with self.assertRaises(BaseDecodeError):
            base_decode("é")

    def test_base58check(self):
        data_hex = '0cd394bef396200774544c58a5be0189f3ceb6a41c8da023b099ce547dd4d8071ed6ed647259fba8c26382edbf5165dfd2404e7a8885d88437db16947a116e451a5d1325e3fd075f9d370120d2ab537af69f32e74fc0ba53aaaa637752964b3ac95cfea7'
        data_bytes = bfh(data_hex)
        data_base58check = EncodeBase58Check(data_bytes)
        self.assertEqual("4GCCJsjHqFbHxWbFBvRg35cSeNLHKeNqkXqFHW87zRmz6iP1dJU9Tk2KHZkoKj45jzVsSV4ZbQ8GpPwko6V3Z7cRfux3zJhUw7TZB6Kpa8Vdya8cMuUtL5Ry3CLtMetaY42u52X7Ey6MAH",
                         data_base58check)
        self.assertEqual(data_bytes,
                         DecodeBase58Check(data_base58check))

    def test_base58check_errors(self):
        with self.assertRaises(InvalidChecksum):
            DecodeBase58Check('1819s5TxxbBtuRPr3qYskMVC8sb1pqapWw')
        with self.assertRaises(BaseDecodeError):
            DecodeBase58Check('11')
